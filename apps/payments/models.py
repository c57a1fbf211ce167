from django.conf import settings
from django.db import models


class PaymentStageQuerySet(models.QuerySet):

    def transition(self, stage_id, from_statuses, **changes):
        """
        Single conditional UPDATE guarded by the current status.

        Returns the number of rows changed; zero means the stage was not in
        one of ``from_statuses`` (or does not exist) and nothing was written.
        """
        if isinstance(from_statuses, str):
            from_statuses = [from_statuses]
        return self.filter(id=stage_id, status__in=from_statuses).update(**changes)

    def ordered(self):
        return self.order_by("required_progress", "id")


class PaymentStage(models.Model):
    STATUS = [
        ("pending", "Pending"),
        ("available", "Available"),
        ("pending_verification", "Pending verification"),
        ("paid", "Paid"),
    ]

    project = models.ForeignKey(
        "projects.Project", on_delete=models.CASCADE, related_name="payment_stages"
    )

    name = models.CharField(max_length=255)
    percentage = models.DecimalField(max_digits=5, decimal_places=2)

    # Captured at creation; later price changes do not touch it
    amount = models.DecimalField(max_digits=12, decimal_places=2)

    required_progress = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(max_length=25, choices=STATUS, default="pending")

    payment_method = models.CharField(max_length=50, null=True, blank=True)
    proof_file_url = models.CharField(max_length=500, null=True, blank=True)
    payment_data = models.JSONField(default=dict, blank=True)

    paid_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_stages",
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PaymentStageQuerySet.as_manager()

    class Meta:
        db_table = "payment_stages"
        ordering = ["required_progress", "id"]
        indexes = [
            models.Index(fields=["project", "status"]),
        ]

    def __str__(self):
        return f"{self.name} [{self.status}]"
