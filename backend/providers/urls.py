from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

# Create router for ViewSets
router = DefaultRouter()
router.register(r'providers', views.ServiceProviderViewSet, basename='serviceprovider')

urlpatterns = [
    # Service Providers API routes
    path('', include(router.urls)),
]
