"""
KISS Services API URLs - Simple routing.
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'services', views.ServiceViewSet, basename='service')
router.register(r'subservices', views.SubserviceViewSet, basename='subservice')

urlpatterns = [
    path('', include(router.urls)),
]
