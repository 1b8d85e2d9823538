from django.urls import path

from . import views

auth_urlpatterns = [
    path('login/', views.login_view, name='login'),
    path('logout/', views.logout_view, name='logout'),
    path('me/', views.me_view, name='me'),
]

agent_urlpatterns = [
    path('', views.agent_collection, name='agents'),
    path('available/', views.agents_available, name='agents_available'),
]

user_urlpatterns = [
    path('', views.user_collection, name='users'),
    path('<uuid:user_id>/', views.user_detail, name='user_detail'),
]
