from django.conf import settings
from django.db import models
from django.utils import timezone


class ClientBillingInfo(models.Model):
    """Legal identity a client wants printed on their documents."""

    DOCUMENT_TYPES = (
        ("ci", "Identity card"),
        ("ruc", "RUC"),
        ("passport", "Passport"),
        ("other", "Other"),
    )

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="billing_info",
    )

    legal_name = models.CharField(max_length=255)
    document_type = models.CharField(max_length=20, choices=DOCUMENT_TYPES, default="ci")
    document_number = models.CharField(max_length=50)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100, default="Paraguay")
    phone = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "client_billing_info"

    def __str__(self):
        return f"{self.legal_name} ({self.document_number})"


class CompanyBillingInfo(models.Model):
    company_name = models.CharField(max_length=255)
    ruc = models.CharField(max_length=50)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100, default="Paraguay")
    phone = models.CharField(max_length=50, blank=True)
    email = models.EmailField(blank=True)
    tax_regime = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "company_billing_info"
        ordering = ["-updated_at", "-id"]

    def __str__(self):
        return f"{self.company_name} ({'active' if self.is_active else 'inactive'})"

    @classmethod
    def current(cls):
        return cls.objects.filter(is_active=True).order_by("-updated_at", "-id").first()

    def as_dict(self):
        return {
            "company_name": self.company_name,
            "ruc": self.ruc,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "phone": self.phone,
            "email": self.email,
            "tax_regime": self.tax_regime,
        }


class Invoice(models.Model):
    STATUS_CHOICES = (
        ("pending", "Pending"),
        ("paid", "Paid"),
        ("overdue", "Overdue"),
        ("cancelled", "Cancelled"),
    )

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="invoices",
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    invoice_number = models.CharField(max_length=32, unique=True, null=True, editable=False)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=10, default="USD")

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="pending")
    due_date = models.DateField()
    paid_at = models.DateTimeField(null=True, blank=True)

    issued_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "invoices"
        ordering = ["-issued_at", "-id"]

    def __str__(self):
        return f"Invoice {self.invoice_number} - Client {self.client_id}"
