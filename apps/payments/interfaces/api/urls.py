from django.urls import path

from .views import (
    AdminCaptureOrderAPI,
    AdminRefundPaymentAPI,
    AdminSyncPaymentAPI,
    CreatePreauthAPI,
    PaymentProvidersAPI,
    PaymentWebhookAPI,
)

urlpatterns = [
    path("payments/providers/", PaymentProvidersAPI.as_view(), name="api_payment_providers"),
    path("orders/<int:order_id>/preauth/", CreatePreauthAPI.as_view(), name="api_order_preauth"),
    path("admin/orders/<int:order_id>/capture/", AdminCaptureOrderAPI.as_view(), name="api_admin_order_capture"),
    path("admin/payments/<int:payment_id>/sync/", AdminSyncPaymentAPI.as_view(), name="api_admin_payment_sync"),
    path("admin/payments/<int:payment_id>/refund/", AdminRefundPaymentAPI.as_view(), name="api_admin_payment_refund"),
    path("webhooks/payments/<str:provider_code>/", PaymentWebhookAPI.as_view(), name="api_payment_webhook"),
]
