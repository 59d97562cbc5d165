from django.urls import path

from .views import (
    AdminCreatePayoutAPI,
    AdminPayablesAPI,
    AdminPayoutDetailAPI,
    AdminResendPayoutAPI,
    AdminSendPayoutAPI,
    AdminSyncPayoutAPI,
    PayoutWebhookAPI,
)

urlpatterns = [
    path("admin/payouts/payables/", AdminPayablesAPI.as_view(), name="api_admin_payables"),
    path("admin/pros/<int:pro_profile_id>/payouts/", AdminCreatePayoutAPI.as_view(), name="api_admin_payout_create"),
    path("admin/payouts/<int:payout_id>/", AdminPayoutDetailAPI.as_view(), name="api_admin_payout_detail"),
    path("admin/payouts/<int:payout_id>/send/", AdminSendPayoutAPI.as_view(), name="api_admin_payout_send"),
    path("admin/payouts/<int:payout_id>/resend/", AdminResendPayoutAPI.as_view(), name="api_admin_payout_resend"),
    path("admin/payouts/<int:payout_id>/sync/", AdminSyncPayoutAPI.as_view(), name="api_admin_payout_sync"),
    path("webhooks/payouts/<str:provider_code>/", PayoutWebhookAPI.as_view(), name="api_payout_webhook"),
]
