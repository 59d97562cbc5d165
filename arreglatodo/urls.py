"""
URL configuration for the arreglatodo project.

Admin screens and the JSON API; presentation layers live in separate apps.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("arreglatodo.api_urls")),
]
