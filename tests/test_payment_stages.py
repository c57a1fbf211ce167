import re
from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from apps.cores.exceptions import Forbidden, InvalidState, NotFound, ValidationFailure
from apps.negotiations import services as negotiations
from apps.notifications.models import Notification
from apps.notifications.services import NotificationService, set_notification_service
from apps.payments.models import PaymentStage
from apps.payments.services import PaymentStageService, proof_reference, stage_amount
from apps.projects.models import ProjectTimeline

from .conftest import BrokenMailer

pytestmark = pytest.mark.django_db

TWO_STAGES = [
    {"name": "Kickoff", "percentage": Decimal("50"), "required_progress": 0},
    {"name": "Delivery", "percentage": Decimal("50"), "required_progress": 50},
]


def _submit(stage, user, name="transfer.pdf"):
    upload = SimpleUploadedFile(name, b"%PDF-1.4 proof", content_type="application/pdf")
    return PaymentStageService.submit_proof(stage.pk, "bank_transfer", user, proof_file=upload)


# -----------------------------
# CREATION
# -----------------------------

def test_stage_without_progress_gate_is_available(project, client_user):
    first, second = PaymentStageService.create_stages(project.pk, TWO_STAGES)

    assert first.status == "available"
    assert first.amount == Decimal("500.00")
    assert second.status == "pending"
    assert second.amount == Decimal("500.00")

    notifications = Notification.objects.filter(recipient=client_user, event="payment_stage_available")
    assert notifications.count() == 1
    assert notifications.get().data["stage_id"] == first.pk


def test_create_stages_emails_the_client(project, client_user, mailer):
    PaymentStageService.create_stages(project.pk, TWO_STAGES)

    assert mailer.recipients() == [client_user.email]
    assert "Kickoff" in mailer.sent[0]["subject"]


def test_amount_is_rounded_to_cents():
    assert stage_amount(Decimal("999.99"), Decimal("33.33")) == Decimal("333.30")


def test_timeline_seeded_once(project):
    PaymentStageService.create_stages(project.pk, TWO_STAGES[:1])
    PaymentStageService.create_stages(project.pk, TWO_STAGES[1:])

    titles = list(ProjectTimeline.objects.filter(project=project).values_list("title", flat=True))
    assert len(titles) == 6
    assert titles[0] == "Analysis & planning"
    assert titles[-1] == "Final delivery"


def test_amount_not_recomputed_when_price_changes(project, admin_user, client_user):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)

    negotiation = negotiations.propose(project.pk, client_user, Decimal("2000.00"))
    negotiations.respond(negotiation.pk, admin_user, "accepted")

    project.refresh_from_db()
    stage.refresh_from_db()
    assert project.price == Decimal("2000.00")
    assert stage.amount == Decimal("500.00")


@pytest.mark.parametrize(
    "stages",
    [
        [],
        [{"name": "Zero", "percentage": Decimal("0"), "required_progress": 0}],
        [{"name": "Too much", "percentage": Decimal("120"), "required_progress": 0}],
        [{"name": "Gate", "percentage": Decimal("10"), "required_progress": 150}],
    ],
)
def test_invalid_stage_definitions_are_rejected(project, stages):
    with pytest.raises(ValidationFailure):
        PaymentStageService.create_stages(project.pk, stages)
    assert not PaymentStage.objects.exists()


def test_create_stages_for_missing_project():
    with pytest.raises(NotFound):
        PaymentStageService.create_stages(9999, TWO_STAGES)


# -----------------------------
# PROOF SUBMISSION
# -----------------------------

def test_submit_proof_moves_to_pending_verification(project, client_user, admin_user, mailer):
    second_admin = type(admin_user).objects.create_user(
        email="a2@agency.test", password="secret-pass-1", role="admin"
    )
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)
    mailer.sent.clear()

    stage = _submit(stage, client_user)

    assert stage.status == "pending_verification"
    assert stage.payment_method == "bank_transfer"
    assert re.fullmatch(rf"comprobante_{stage.pk}_\d+_transfer\.pdf", stage.proof_file_url)
    assert stage.payment_data["confirmedBy"] == client_user.pk
    assert stage.payment_data["originalFileName"] == "transfer.pdf"
    assert stage.payment_data["fileInfo"]["type"] == "application/pdf"

    admin_notice = Notification.objects.get(recipient=admin_user, event="payment_proof_received")
    assert admin_notice.notif_type == "warning"
    assert Notification.objects.filter(
        recipient=second_admin, event="payment_proof_received"
    ).exists()

    # one "proof received" email for the back office, one confirmation to the client
    assert sorted(mailer.recipients()) == sorted(["ops@agency.test", client_user.email])
    assert not Notification.objects.filter(
        recipient=client_user, event="payment_proof_confirmation"
    ).exists()


def test_submit_proof_from_descriptor(project, client_user):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)

    stage = PaymentStageService.submit_proof(
        stage.pk,
        "bank_transfer",
        client_user,
        proof_file_info={"fileName": "scan.png", "fileSize": 2048, "fileType": "image/png"},
    )

    assert re.fullmatch(rf"comprobante_{stage.pk}_\d+\.png", stage.proof_file_url)
    assert stage.payment_data["fileInfo"] == {"name": "scan.png", "size": 2048, "type": "image/png"}


def test_proof_reference_defaults_to_jpg():
    assert re.fullmatch(r"comprobante_7_\d+\.jpg", proof_reference(7))


def test_submit_proof_by_other_client_is_forbidden(project, other_client):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)

    with pytest.raises(Forbidden):
        _submit(stage, other_client)

    stage.refresh_from_db()
    assert stage.status == "available"


def test_submit_proof_on_missing_stage():
    with pytest.raises(NotFound):
        PaymentStageService.submit_proof(4242, "bank_transfer", None)


def test_submit_proof_on_paid_stage_is_rejected(project, client_user, admin_user):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)
    _submit(stage, client_user)
    PaymentStageService.approve(stage.pk, admin_user)

    with pytest.raises(InvalidState):
        _submit(stage, client_user)

    stage.refresh_from_db()
    assert stage.status == "paid"


# -----------------------------
# APPROVAL / REJECTION
# -----------------------------

def test_submit_then_approve(project, client_user, admin_user):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)
    _submit(stage, client_user)

    stage = PaymentStageService.approve(stage.pk, admin_user)

    assert stage.status == "paid"
    assert stage.paid_at is not None
    assert stage.approved_by == admin_user
    assert stage.approved_at is not None

    approved = Notification.objects.filter(recipient=client_user, event="payment_approved")
    assert approved.count() == 1
    assert approved.get().notif_type == "success"


@pytest.mark.parametrize("operation", ["approve", "reject"])
def test_verification_requires_pending_verification(project, admin_user, operation):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)
    before = PaymentStage.objects.values().get(pk=stage.pk)

    with pytest.raises(InvalidState):
        if operation == "approve":
            PaymentStageService.approve(stage.pk, admin_user)
        else:
            PaymentStageService.reject(stage.pk, admin_user, "wrong amount")

    assert PaymentStage.objects.values().get(pk=stage.pk) == before


def test_reject_returns_stage_to_available(project, client_user, admin_user):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)
    _submit(stage, client_user)

    stage = PaymentStageService.reject(stage.pk, admin_user, "comprobante ilegible")

    assert stage.status == "available"
    assert stage.payment_method is None
    assert stage.proof_file_url is None
    assert stage.payment_data["confirmedBy"] == client_user.pk
    assert stage.payment_data["originalFileName"] == "transfer.pdf"
    assert stage.payment_data["rejectedBy"] == admin_user.pk
    assert stage.payment_data["rejectionReason"] == "comprobante ilegible"
    assert "rejectedAt" in stage.payment_data

    rejected = Notification.objects.get(recipient=client_user, event="payment_rejected")
    assert rejected.notif_type == "error"
    assert "comprobante ilegible" in rejected.message


def test_rejected_stage_can_be_resubmitted(project, client_user, admin_user):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)
    _submit(stage, client_user)
    PaymentStageService.reject(stage.pk, admin_user, "blurry")

    stage = _submit(stage, client_user, name="second.jpg")
    assert stage.status == "pending_verification"
    assert stage.proof_file_url.endswith("_second.jpg")


def test_second_approval_fails(project, client_user, admin_user):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)
    _submit(stage, client_user)
    PaymentStageService.approve(stage.pk, admin_user)

    with pytest.raises(InvalidState):
        PaymentStageService.approve(stage.pk, admin_user)

    assert Notification.objects.filter(recipient=client_user, event="payment_approved").count() == 1


def test_broken_mailer_does_not_undo_approval(project, client_user, admin_user, connections):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)
    _submit(stage, client_user)

    set_notification_service(NotificationService(connections, BrokenMailer()))
    stage = PaymentStageService.approve(stage.pk, admin_user)

    assert stage.status == "paid"
    assert Notification.objects.filter(recipient=client_user, event="payment_approved").exists()


# -----------------------------
# ADMIN EDITS
# -----------------------------

def test_complete_marks_available_stage_paid(project, admin_user, client_user):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)

    stage = PaymentStageService.complete(stage.pk, admin_user)

    assert stage.status == "paid"
    assert stage.approved_by == admin_user


def test_complete_refuses_pending_stage(project, admin_user):
    _, gated = PaymentStageService.create_stages(project.pk, TWO_STAGES)

    with pytest.raises(InvalidState):
        PaymentStageService.complete(gated.pk, admin_user)


def test_promoting_pending_stage_notifies_client(project, client_user):
    _, gated = PaymentStageService.create_stages(project.pk, TWO_STAGES)

    stage = PaymentStageService.update(gated.pk, {"status": "available", "name": "Final delivery"})

    assert stage.status == "available"
    assert stage.name == "Final delivery"
    assert Notification.objects.filter(
        recipient=client_user, event="payment_stage_available"
    ).count() == 2


def test_update_cannot_demote_stage(project):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)

    with pytest.raises(InvalidState):
        PaymentStageService.update(stage.pk, {"status": "pending"})


def test_progress_gate_frozen_after_stage_opens(project):
    available, gated = PaymentStageService.create_stages(project.pk, TWO_STAGES)

    with pytest.raises(InvalidState):
        PaymentStageService.update(available.pk, {"required_progress": 40})

    available.refresh_from_db()
    assert available.required_progress == 0
    assert available.status == "available"

    # unchanged gate on an open stage and any gate on a pending one are fine
    PaymentStageService.update(available.pk, {"required_progress": 0, "name": "Deposit"})
    assert PaymentStageService.update(gated.pk, {"required_progress": 70}).required_progress == 70


# -----------------------------
# RECEIPT
# -----------------------------

def test_receipt_exposes_proof_metadata(project, client_user):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)
    _submit(stage, client_user)

    receipt = PaymentStageService.receipt(stage.pk, client_user)

    assert receipt["original_file_name"] == "transfer.pdf"
    assert receipt["proof_file_url"].startswith(f"comprobante_{stage.pk}_")


def test_receipt_without_proof(project, client_user):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)

    with pytest.raises(NotFound):
        PaymentStageService.receipt(stage.pk, client_user)


def test_receipt_of_foreign_stage(project, client_user, other_client):
    stage, _ = PaymentStageService.create_stages(project.pk, TWO_STAGES)
    _submit(stage, client_user)

    with pytest.raises(Forbidden):
        PaymentStageService.receipt(stage.pk, other_client)
