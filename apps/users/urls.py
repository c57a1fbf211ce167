from django.urls import path

from .views import (
    AdminPartnerDetailView,
    AdminPartnerListCreateView,
    AdminPartnerStatsView,
    AdminUserListCreateView,
    AdminUserStatsView,
    LoginView,
    MeView,
    PartnerCommissionListView,
    PartnerEarningsView,
    PartnerMeView,
    PartnerReferralListView,
    UserDetailView,
)

urlpatterns = [
    # -------- Auth --------
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/me/", MeView.as_view(), name="me"),

    # -------- Users --------
    path("users/", AdminUserListCreateView.as_view(), name="user-list"),
    path("users/stats/", AdminUserStatsView.as_view(), name="user-stats"),
    path("users/<int:user_id>/", UserDetailView.as_view(), name="user-detail"),

    # -------- Partners --------
    path("partners/me/", PartnerMeView.as_view(), name="partner-me"),
    path("partners/referrals/", PartnerReferralListView.as_view(), name="partner-referrals"),
    path("partners/earnings/", PartnerEarningsView.as_view(), name="partner-earnings"),
    path("partners/commissions/", PartnerCommissionListView.as_view(), name="partner-commissions"),
    path("admin/partners/", AdminPartnerListCreateView.as_view(), name="admin-partner-list"),
    path("admin/partners/stats/", AdminPartnerStatsView.as_view(), name="admin-partner-stats"),
    path(
        "admin/partners/<int:partner_id>/",
        AdminPartnerDetailView.as_view(),
        name="admin-partner-detail",
    ),
]
