from django.db.models import Count, Q, Sum

from .models import Invoice


class InvoiceAccessSelector:
    """
    Centralized read-access logic for invoices (row-level access).
    """
    @staticmethod
    def for_user(user):
        qs = Invoice.objects.select_related("project", "client")
        if user.has_admin_access():
            return qs
        return qs.filter(client=user)


class InvoiceSummarySelector:
    """
    Aggregations over a client's invoices (NOT access control).
    """
    @staticmethod
    def for_client(user):
        qs = Invoice.objects.filter(client=user)
        totals = qs.aggregate(
            count=Count("id"),
            pending=Sum("amount", filter=Q(status="pending")),
            paid=Sum("amount", filter=Q(status="paid")),
            overdue=Sum("amount", filter=Q(status="overdue")),
        )
        return {
            "invoice_count": totals["count"],
            "pending_amount": totals["pending"] or 0,
            "paid_amount": totals["paid"] or 0,
            "overdue_amount": totals["overdue"] or 0,
        }
