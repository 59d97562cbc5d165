from django.urls import path

from .views import ApproveProAPI, SuspendProAPI, UnsuspendProAPI

urlpatterns = [
    path("admin/pros/<int:pro_profile_id>/approve/", ApproveProAPI.as_view(), name="api_admin_pro_approve"),
    path("admin/pros/<int:pro_profile_id>/suspend/", SuspendProAPI.as_view(), name="api_admin_pro_suspend"),
    path("admin/pros/<int:pro_profile_id>/unsuspend/", UnsuspendProAPI.as_view(), name="api_admin_pro_unsuspend"),
]
