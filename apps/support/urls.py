from django.urls import path

from .views import (
    AdminTicketDetailView,
    AdminTicketListView,
    AdminTicketStatsView,
    ContactView,
    TicketListCreateView,
    TicketResponseListCreateView,
)

urlpatterns = [
    path("contact/", ContactView.as_view(), name="contact"),

    path("tickets/", TicketListCreateView.as_view(), name="ticket-list"),
    path(
        "tickets/<int:ticket_id>/responses/",
        TicketResponseListCreateView.as_view(),
        name="ticket-responses",
    ),

    # -------- Admin --------
    path("admin/tickets/", AdminTicketListView.as_view(), name="admin-ticket-list"),
    path("admin/tickets/stats/", AdminTicketStatsView.as_view(), name="admin-ticket-stats"),
    path("admin/tickets/<int:ticket_id>/", AdminTicketDetailView.as_view(), name="admin-ticket-detail"),
]
