from django.conf import settings
from django.db import models


class BudgetNegotiation(models.Model):
    """
    One proposal in a project's price negotiation.
    Countering closes this row and opens a new pending one.
    """

    STATUS = [
        ("pending", "Pending"),
        ("accepted", "Accepted"),
        ("rejected", "Rejected"),
        ("countered", "Countered"),
    ]

    project = models.ForeignKey(
        "projects.Project", on_delete=models.CASCADE, related_name="budget_negotiations"
    )
    proposed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="budget_proposals"
    )

    original_price = models.DecimalField(max_digits=12, decimal_places=2)
    proposed_price = models.DecimalField(max_digits=12, decimal_places=2)
    message = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=STATUS, default="pending")

    created_at = models.DateTimeField(auto_now_add=True)
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "budget_negotiations"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"Negotiation #{self.id} {self.proposed_price} ({self.status})"
