from decimal import Decimal

import pytest
from django.utils import timezone

from apps.billing.models import ClientBillingInfo, CompanyBillingInfo
from apps.billing.services import BillingProfileService
from apps.cores.exceptions import Forbidden, InvalidState
from apps.payments.documents import invoice_number_for, render_pdf
from apps.payments.models import PaymentStage
from apps.payments.services import PaymentStageService

pytestmark = pytest.mark.django_db


def _stage(project, name, required_progress, status="paid", pct="25"):
    return PaymentStage.objects.create(
        project=project,
        name=name,
        percentage=Decimal(pct),
        amount=project.price * Decimal(pct) / 100,
        required_progress=required_progress,
        status=status,
        paid_at=timezone.now() if status == "paid" else None,
    )


def test_invoice_number_format():
    assert invoice_number_for(7, 3, year=2025) == "INV-2025-0007-03"


def test_stages_numbered_by_required_progress(project, client_user):
    late = _stage(project, "Launch", 100)
    early = _stage(project, "Kickoff", 0)
    middle = _stage(project, "Beta", 50, status="available")

    document = PaymentStageService.settlement_document(late.pk, client_user)
    assert (document.stage_number, document.total_stages) == (3, 3)
    assert document.stage_label == "Stage 3 of 3"

    document = PaymentStageService.settlement_document(early.pk, client_user)
    year = timezone.localdate().year
    assert document.stage_number == 1
    assert document.invoice_number == f"INV-{year}-{project.pk:04d}-01"
    assert document.file_name == f"Factura_INV-{year}-{project.pk:04d}-01.pdf"
    assert middle.status == "available"


def test_ties_on_required_progress_are_ordered_by_id(project, client_user):
    first = _stage(project, "A", 0)
    second = _stage(project, "B", 0)

    assert PaymentStageService.settlement_document(first.pk, client_user).stage_number == 1
    assert PaymentStageService.settlement_document(second.pk, client_user).stage_number == 2


def test_document_contents(project, client_user):
    stage = _stage(project, "Kickoff", 0, pct="50")
    stage.payment_method = "bank_transfer"
    stage.save()

    document = PaymentStageService.settlement_document(stage.pk, client_user)

    assert len(document.line_items) == 1
    item = document.line_items[0]
    assert item.quantity == 1
    assert item.description == "Kickoff - Stage 1 of 1"
    assert item.unit_price == item.total == Decimal("500.00")
    assert document.subtotal == document.total == Decimal("500.00")
    assert document.tax_rate == 0
    assert document.tax == Decimal("0.00")
    assert document.payment_method == "bank_transfer"
    assert document.billee["client_code"] == f"{client_user.pk:06d}"
    assert document.billee["project_name"] == "Shop redesign"
    assert document.billee["name"] == "Carlos Client"


def test_missing_method_defaults_to_bank_transfer(project, client_user):
    stage = _stage(project, "Kickoff", 0)
    document = PaymentStageService.settlement_document(stage.pk, client_user)
    assert document.payment_method == "Bank transfer"


def test_company_defaults_used_without_billing_record(project, client_user, settings):
    settings.COMPANY_DEFAULTS = {**settings.COMPANY_DEFAULTS, "company_name": "Fallback SRL"}
    stage = _stage(project, "Kickoff", 0)

    document = PaymentStageService.settlement_document(stage.pk, client_user)
    assert document.biller["company_name"] == "Fallback SRL"


def test_latest_active_company_record_is_used(project, client_user):
    BillingProfileService.create_company_info({"company_name": "Old Co", "ruc": "1"})
    BillingProfileService.create_company_info(
        {"company_name": "New Co", "ruc": "2", "tax_regime": "RESIMPLE"}
    )
    assert CompanyBillingInfo.objects.filter(is_active=True).count() == 1

    stage = _stage(project, "Kickoff", 0)
    document = PaymentStageService.settlement_document(stage.pk, client_user)

    assert document.biller["company_name"] == "New Co"
    assert document.legal_notice[0] == "Tax regime: RESIMPLE"


def test_client_billing_profile_is_used(project, client_user):
    ClientBillingInfo.objects.create(
        user=client_user,
        legal_name="Acme S.A.",
        document_type="ruc",
        document_number="80012345-6",
        city="Encarnación",
    )
    stage = _stage(project, "Kickoff", 0)

    document = PaymentStageService.settlement_document(stage.pk, client_user)

    assert document.billee["name"] == "Acme S.A."
    assert document.billee["document"] == "RUC: 80012345-6"


def test_only_owner_can_download(project, other_client, admin_user):
    stage = _stage(project, "Kickoff", 0)

    with pytest.raises(Forbidden):
        PaymentStageService.settlement_document(stage.pk, other_client)
    with pytest.raises(Forbidden):
        PaymentStageService.settlement_document(stage.pk, admin_user)


def test_unpaid_stage_has_no_document(project, client_user):
    stage = _stage(project, "Kickoff", 0, status="pending_verification")

    with pytest.raises(InvalidState):
        PaymentStageService.settlement_document(stage.pk, client_user)


def test_render_pdf(project, client_user):
    stage = _stage(project, "Kickoff & <setup>", 0)
    document = PaymentStageService.settlement_document(stage.pk, client_user)

    pdf = render_pdf(document)

    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000
