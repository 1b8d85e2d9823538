from django.urls import path

from . import views

app_name = 'companies'

urlpatterns = [
    path('', views.company_collection, name='list'),
    path('<uuid:company_id>/', views.company_detail, name='detail'),
    path('<uuid:company_id>/details/', views.company_details, name='details'),
    path('<uuid:company_id>/reset-code/', views.company_reset_code, name='reset_code'),
]
