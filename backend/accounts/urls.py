from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

# Create router for ViewSets
router = DefaultRouter()
router.register(r'addresses', views.AddressViewSet, basename='address')

urlpatterns = [
    # Authentication endpoints
    path('auth/send-otp/', views.send_otp_view, name='auth_send_otp'),
    path('auth/verify-otp/', views.verify_otp_view, name='auth_verify_otp'),
    path('auth/admin/login/', views.admin_login_view, name='auth_admin_login'),

    # Profile of the authenticated user
    path('users/profile/', views.profile_view, name='user_profile'),

    # Address book API routes
    path('', include(router.urls)),
]
