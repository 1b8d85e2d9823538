from django.urls import path

from . import views

app_name = 'notifications'

urlpatterns = [
    path('', views.notification_list, name='list'),
    path('count/', views.notification_count, name='count'),
    path('mark-read/', views.notification_mark_all_read, name='mark_all_read'),
    path('<uuid:notification_id>/read/', views.notification_mark_read, name='mark_read'),
]
