from django.urls import path

from . import views

app_name = 'service_requests'

urlpatterns = [
    path('', views.request_collection, name='list'),
    path('<uuid:request_id>/', views.request_detail, name='detail'),
    path('<uuid:request_id>/assign/', views.request_assign, name='assign'),
    path('<uuid:request_id>/status/', views.request_status, name='status'),
    path('<uuid:request_id>/notes/', views.request_notes, name='notes'),
    path('<uuid:request_id>/attachments/', views.request_attachments, name='attachments'),
    path(
        '<uuid:request_id>/attachments/<str:stored_name>/download/',
        views.attachment_download,
        name='attachment_download',
    ),
]
