import logging

from django.db import transaction
from django.utils import timezone

from apps.cores.exceptions import NotFound
from apps.notifications.events import InvoiceIssued
from apps.notifications.services import get_notification_service
from apps.projects.models import Project

from .models import ClientBillingInfo, CompanyBillingInfo, Invoice

logger = logging.getLogger(__name__)


class InvoiceService:

    @staticmethod
    def issue(*, project_id, amount, due_date, currency="USD"):
        project = Project.objects.select_related("client").filter(id=project_id).first()
        if project is None:
            raise NotFound("Project not found.")

        with transaction.atomic():
            invoice = Invoice.objects.create(
                project=project,
                client=project.client,
                amount=amount,
                currency=currency,
                due_date=due_date,
                issued_at=timezone.now(),
            )
            # Number needs the primary key
            invoice.invoice_number = InvoiceService._generate_invoice_number(invoice)
            invoice.save(update_fields=["invoice_number"])

        logger.info("Invoice %s issued for project %s", invoice.invoice_number, project.pk)

        get_notification_service().notify(
            project.client,
            InvoiceIssued(
                invoice_id=invoice.pk,
                invoice_number=invoice.invoice_number,
                project_name=project.name,
                amount=invoice.amount,
                due_date=invoice.due_date,
            ),
        )
        return invoice

    @staticmethod
    def update(invoice, changes):
        for field, value in changes.items():
            setattr(invoice, field, value)
        if changes.get("status") == "paid" and invoice.paid_at is None:
            invoice.paid_at = timezone.now()
        invoice.save()
        return invoice

    @staticmethod
    def _generate_invoice_number(invoice: Invoice) -> str:
        """
        Example: INV-2026-007
        """
        return f"INV-{invoice.issued_at.year}-{invoice.pk:03d}"


class BillingProfileService:

    @staticmethod
    def save_client_info(user, data):
        info, created = ClientBillingInfo.objects.update_or_create(user=user, defaults=data)
        logger.info("Billing info %s for user %s", "created" if created else "updated", user.pk)
        return info, created

    @staticmethod
    @transaction.atomic
    def create_company_info(data):
        """A new company record replaces every previous one."""
        CompanyBillingInfo.objects.filter(is_active=True).update(is_active=False)
        return CompanyBillingInfo.objects.create(is_active=True, **data)
