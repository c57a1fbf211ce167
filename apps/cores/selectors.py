from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import Count, Q, Sum
from django.utils import timezone

from apps.payments.models import PaymentStage
from apps.projects.models import Project
from apps.support.models import Ticket


class AdminDashboardSelector:
    """
    Headline numbers for the back-office dashboard (ADMIN ONLY)
    """
    @staticmethod
    def summary():
        User = get_user_model()
        month_start = timezone.localdate().replace(day=1)

        users = User.objects.aggregate(
            total_users=Count("id"),
            total_clients=Count("id", filter=Q(role="client")),
            total_partners=Count("id", filter=Q(role="partner")),
        )
        projects = Project.objects.aggregate(
            total_projects=Count("id"),
            active_projects=Count("id", filter=Q(status="in_progress")),
            completed_projects=Count("id", filter=Q(status="completed")),
        )
        payments = PaymentStage.objects.aggregate(
            total_revenue=Sum("amount", filter=Q(status="paid")),
            monthly_revenue=Sum("amount", filter=Q(status="paid", paid_at__date__gte=month_start)),
            pending_verifications=Count("id", filter=Q(status="pending_verification")),
        )
        open_tickets = Ticket.objects.filter(status__in=["open", "in_progress"]).count()

        return {
            **users,
            **projects,
            "total_revenue": payments["total_revenue"] or Decimal("0.00"),
            "monthly_revenue": payments["monthly_revenue"] or Decimal("0.00"),
            "pending_verifications": payments["pending_verifications"],
            "open_tickets": open_tickets,
        }
