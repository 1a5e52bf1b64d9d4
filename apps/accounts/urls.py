from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # Authentication
    path('register/', views.register, name='register'),
    path('login/', views.login, name='login'),

    # User profile
    path('user/', views.get_current_user, name='current-user'),
    path('user/update/', views.update_profile, name='update-profile'),
    path('user/change-password/', views.change_password, name='change-password'),
    path('user/avatar/', views.upload_avatar, name='upload-avatar'),
    path('user/deactivate/', views.deactivate, name='deactivate'),

    # Directory & moderation
    path('users/', views.UserListView.as_view(), name='user-list'),
    path('users/<uuid:pk>/', views.UserDetailView.as_view(), name='user-detail'),
    path('users/<uuid:pk>/set-active/', views.set_active, name='user-set-active'),
]
