from django.urls import path

from .views import OrderChatAvailabilityAPI

urlpatterns = [
    path("orders/<int:order_id>/chat/", OrderChatAvailabilityAPI.as_view(), name="api_order_chat"),
]
