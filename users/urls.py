from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    path('auth/login', views.login, name='login'),
    path('auth/register', views.register, name='register'),
    path('auth/me', views.me, name='me'),

    # admin user management
    path('users', views.user_list, name='user_list'),
    path('users/<int:pk>/activate', views.activate_user, name='activate_user'),
    path('users/<int:pk>/deactivate', views.deactivate_user, name='deactivate_user'),
]
