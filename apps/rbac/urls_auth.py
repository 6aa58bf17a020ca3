"""
URL routing for authentication endpoints.
"""
from django.urls import path

from apps.rbac.views_auth import LoginView, MeView, RegisterView

app_name = 'auth'

urlpatterns = [
    # Registration and login
    path('register', RegisterView.as_view(), name='register'),
    path('login', LoginView.as_view(), name='login'),

    # Current user
    path('me', MeView.as_view(), name='me'),
]
