from django.urls import include, path

urlpatterns = [
    # Authentication, profile and addresses
    path('', include('accounts.urls')),

    # Catalog
    path('catalog/', include('services.urls')),

    # Core functionality
    path('', include('bookings.urls')),
    path('', include('providers.urls')),
    path('', include('reviews.urls')),
]
