from django.urls import path

from .views import (
    AcceptOrderAPI,
    AdminForceOrderStatusAPI,
    AdminOrderAuditAPI,
    ApproveHoursAPI,
    CancelOrderAPI,
    DisputeOrderAPI,
    MarkArrivedAPI,
    OrderCreateAPI,
    OrderDetailAPI,
    OrderTransitionAPI,
    RejectOrderAPI,
    StartOrderAPI,
    SubmitHoursAPI,
    SubmitOrderAPI,
)

urlpatterns = [
    path("orders/", OrderCreateAPI.as_view(), name="api_order_create"),
    path("orders/<int:order_id>/", OrderDetailAPI.as_view(), name="api_order_detail"),
    path("orders/<int:order_id>/transition/", OrderTransitionAPI.as_view(), name="api_order_transition"),
    path("orders/<int:order_id>/submit/", SubmitOrderAPI.as_view(), name="api_order_submit"),
    path("orders/<int:order_id>/accept/", AcceptOrderAPI.as_view(), name="api_order_accept"),
    path("orders/<int:order_id>/reject/", RejectOrderAPI.as_view(), name="api_order_reject"),
    path("orders/<int:order_id>/start/", StartOrderAPI.as_view(), name="api_order_start"),
    path("orders/<int:order_id>/arrive/", MarkArrivedAPI.as_view(), name="api_order_arrive"),
    path("orders/<int:order_id>/submit-hours/", SubmitHoursAPI.as_view(), name="api_order_submit_hours"),
    path("orders/<int:order_id>/approve-hours/", ApproveHoursAPI.as_view(), name="api_order_approve_hours"),
    path("orders/<int:order_id>/cancel/", CancelOrderAPI.as_view(), name="api_order_cancel"),
    path("orders/<int:order_id>/dispute/", DisputeOrderAPI.as_view(), name="api_order_dispute"),
    path("admin/orders/<int:order_id>/force-status/", AdminForceOrderStatusAPI.as_view(), name="api_admin_order_force_status"),
    path("admin/orders/<int:order_id>/audit/", AdminOrderAuditAPI.as_view(), name="api_admin_order_audit"),
]
