from django.conf import settings
from django.db import models


class Notification(models.Model):
    """
    Durable record of every event delivered to a user.
    Rows are written by the fan-out service only.
    """

    TYPE_CHOICES = [
        ("info", "Info"),
        ("success", "Success"),
        ("warning", "Warning"),
        ("error", "Error"),
    ]

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications"
    )

    notif_type = models.CharField(
        max_length=20,
        choices=TYPE_CHOICES,
        default="info"
    )

    # Tag of the domain event that produced this row (e.g. "payment_approved")
    event = models.CharField(max_length=50, blank=True)

    title = models.CharField(max_length=255)

    message = models.TextField(blank=True)

    # Optional metadata (store IDs like project_id, stage_id)
    data = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["recipient", "is_read"]),
        ]

    def __str__(self):
        return f"Notification({self.recipient_id}, {self.event or self.notif_type})"

    def as_push_payload(self):
        return {
            "type": "notification",
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "notif_type": self.notif_type,
            "event": self.event,
            "data": self.data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "is_read": self.is_read,
        }
