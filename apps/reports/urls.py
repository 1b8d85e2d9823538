from django.urls import path

from . import views

app_name = 'reports'

urlpatterns = [
    path('', views.report_view, name='report'),
    path('agent-summary/', views.agent_summary_view, name='agent_summary'),
    path('customers/', views.customers_view, name='customers'),
    path('activity/', views.activity_view, name='activity'),
]
