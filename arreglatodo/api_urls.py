"""
API URL aggregation.

Collects each app's API routes under `/api/`.
"""

from django.urls import include, path

urlpatterns = [
    path("", include("apps.orders.interfaces.api.urls")),
    path("", include("apps.payments.interfaces.api.urls")),
    path("", include("apps.payouts.interfaces.api.urls")),
    path("", include("apps.chat.interfaces.api.urls")),
    path("", include("apps.pros.interfaces.api.urls")),
]
