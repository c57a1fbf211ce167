import random
import string

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone


class UserManager(BaseUserManager):
    """Custom user manager supporting email authentication."""

    def create_user(self, email, username=None, password=None, **extra_fields):
        if not email:
            raise ValueError("Email is required")

        email = self.normalize_email(email).lower()
        username = username or email.split("@")[0]

        user = self.model(
            email=email,
            username=username,
            **extra_fields
        )
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, username=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", "admin")  # Force admin role

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, username, password, **extra_fields)

    def admins(self):
        return self.filter(role="admin", is_active=True)


class User(AbstractUser):
    ROLE_CHOICES = (
        ("client", "Client"),
        ("partner", "Partner"),
        ("admin", "Admin"),
    )

    email = models.EmailField(unique=True, db_index=True)
    username = models.CharField(max_length=150)
    full_name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="client")
    created_at = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        db_table = "users"
        indexes = [
            models.Index(fields=["role", "is_active"]),
        ]

    def __str__(self):
        return f"{self.email} ({self.role})"

    @property
    def display_name(self):
        return self.full_name or self.get_full_name() or self.username or self.email

    def has_admin_access(self):
        return self.role == "admin"


def generate_referral_code(user_id):
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"PAR{user_id}{suffix}"


class Partner(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="partner_profile")
    referral_code = models.CharField(max_length=32, unique=True)
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2, default=25.00)
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=0.00)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "partners"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Partner {self.referral_code} ({self.user.email})"


class Referral(models.Model):
    STATUS = (
        ("pending", "Pending"),
        ("converted", "Converted"),
    )

    partner = models.ForeignKey(Partner, on_delete=models.CASCADE, related_name="referrals")
    client = models.OneToOneField(User, on_delete=models.CASCADE, related_name="referral")
    status = models.CharField(max_length=20, choices=STATUS, default="pending")
    created_at = models.DateTimeField(auto_now_add=True)
    converted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "referrals"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.partner.referral_code} -> {self.client.email}"


class Commission(models.Model):
    """Partner share of one paid payment stage of a referred client."""

    partner = models.ForeignKey(Partner, on_delete=models.CASCADE, related_name="commissions")
    referral = models.ForeignKey(Referral, on_delete=models.CASCADE, related_name="commissions")
    stage = models.OneToOneField(
        "payments.PaymentStage", on_delete=models.CASCADE, related_name="commission"
    )
    rate = models.DecimalField(max_digits=5, decimal_places=2)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "partner_commissions"
        ordering = ["-created_at"]
