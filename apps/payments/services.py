import logging
import os
import time
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.utils import timezone

from apps.cores.exceptions import Forbidden, InvalidState, NotFound, ValidationFailure
from apps.notifications.events import (
    PaymentApproved,
    PaymentProofConfirmation,
    PaymentProofReceived,
    PaymentRejected,
    PaymentStageAvailable,
)
from apps.notifications.services import get_notification_service
from apps.projects.models import Project
from apps.projects.services import seed_timeline
from apps.users.services import PartnerService

from .constants import COMPLETABLE_STATUSES, PAYABLE_STATUSES
from .documents import SettlementDocument
from .models import PaymentStage
from .selectors import StageAccessSelector

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def stage_amount(price, percentage):
    return (Decimal(price) * Decimal(percentage) / Decimal("100")).quantize(
        CENT, rounding=ROUND_HALF_UP
    )


def proof_reference(stage_id, original_name=None, content_type=None):
    """
    Name under which a proof is recorded. Uploaded bytes are not kept, only
    this reference and the descriptor the client sent.
    """
    millis = int(time.time() * 1000)
    if original_name:
        return f"comprobante_{stage_id}_{millis}_{os.path.basename(original_name)}"
    ext = (content_type or "").split("/")[-1] or "jpg"
    return f"comprobante_{stage_id}_{millis}.{ext}"


def _available_event(stage, project):
    return PaymentStageAvailable(
        project_id=project.pk,
        project_name=project.name,
        stage_id=stage.pk,
        stage_name=stage.name,
        amount=stage.amount,
        percentage=stage.percentage,
    )


class PaymentStageService:

    # -----------------------------
    # CREATION
    # -----------------------------

    @staticmethod
    def validate_definitions(stages):
        if not stages:
            raise ValidationFailure({"stages": "At least one stage is required."})

        errors = {}
        for index, entry in enumerate(stages):
            name = (entry.get("name") or "").strip()
            percentage = Decimal(str(entry.get("percentage", 0)))
            required_progress = int(entry.get("required_progress", 0))

            if not name:
                errors[f"stages[{index}].name"] = "Name is required."
            if not Decimal("0") < percentage <= Decimal("100"):
                errors[f"stages[{index}].percentage"] = "Percentage must be in (0, 100]."
            if not 0 <= required_progress <= 100:
                errors[f"stages[{index}].required_progress"] = "Required progress must be in [0, 100]."

        if errors:
            raise ValidationFailure(errors)

    @staticmethod
    def create_stages(project_id, stages):
        """
        Create the payment stages of a project.

        Amounts are computed from the project price now and never again.
        A stage without a progress gate is payable right away and the client
        is told so. The project gets its default timeline the first time.
        """
        PaymentStageService.validate_definitions(stages)

        project = Project.objects.select_related("client").filter(id=project_id).first()
        if project is None:
            raise NotFound("Project not found.")

        with transaction.atomic():
            created = []
            for entry in stages:
                percentage = Decimal(str(entry["percentage"]))
                required_progress = int(entry.get("required_progress", 0))
                created.append(
                    PaymentStage.objects.create(
                        project=project,
                        name=entry["name"].strip(),
                        percentage=percentage,
                        amount=stage_amount(project.price, percentage),
                        required_progress=required_progress,
                        status="available" if required_progress == 0 else "pending",
                    )
                )
            seed_timeline(project)

        logger.info("Created %d payment stage(s) for project %s", len(created), project.pk)

        service = get_notification_service()
        for stage in created:
            if stage.status == "available":
                service.notify(project.client, _available_event(stage, project))

        return created

    # -----------------------------
    # PROOF OF PAYMENT
    # -----------------------------

    @staticmethod
    def submit_proof(stage_id, method, submitter, proof_file=None, proof_file_info=None):
        stage = StageAccessSelector.get(stage_id)
        project = stage.project
        client = project.client
        if client is None:
            raise NotFound("Project client not found.")

        if not submitter.has_admin_access() and client.pk != submitter.pk:
            raise Forbidden("You do not have access to this payment stage.")

        if not method:
            raise ValidationFailure({"payment_method": "Payment method is required."})

        file_info = None
        original_name = None
        reference = None
        if proof_file is not None:
            original_name = proof_file.name
            file_info = {
                "name": proof_file.name,
                "size": proof_file.size,
                "type": getattr(proof_file, "content_type", None),
            }
            reference = proof_reference(stage.pk, original_name=original_name)
        elif proof_file_info:
            original_name = proof_file_info.get("fileName") or proof_file_info.get("name")
            file_info = {
                "name": original_name,
                "size": proof_file_info.get("fileSize") or proof_file_info.get("size"),
                "type": proof_file_info.get("fileType") or proof_file_info.get("type"),
            }
            reference = proof_reference(stage.pk, content_type=file_info["type"])

        now = timezone.now()
        payment_data = {
            "confirmedBy": submitter.pk,
            "confirmedAt": now.isoformat(),
            "method": method,
            "fileInfo": file_info,
            "originalFileName": original_name,
        }

        updated = PaymentStage.objects.transition(
            stage.pk,
            PAYABLE_STATUSES,
            status="pending_verification",
            payment_method=method,
            proof_file_url=reference,
            payment_data=payment_data,
            updated_at=now,
        )
        if not updated:
            raise InvalidState("This stage has already been paid.")

        logger.info("Proof submitted for stage %s by user %s", stage.pk, submitter.pk)

        stage.refresh_from_db()
        service = get_notification_service()
        service.notify_admins(
            PaymentProofReceived(
                project_id=project.pk,
                project_name=project.name,
                stage_id=stage.pk,
                stage_name=stage.name,
                amount=stage.amount,
                client_name=client.display_name,
                payment_method=method,
                file_description=(
                    f"{original_name} ({file_info['size']} bytes)"
                    if file_info and original_name else None
                ),
            ),
            email=False,
            include_system_mailbox=True,
        )
        service.email_only(
            client.email,
            PaymentProofConfirmation(
                project_id=project.pk,
                project_name=project.name,
                stage_id=stage.pk,
                stage_name=stage.name,
                amount=stage.amount,
                payment_method=method,
            ),
        )
        return stage

    # -----------------------------
    # VERIFICATION
    # -----------------------------

    @staticmethod
    def approve(stage_id, approver):
        stage = StageAccessSelector.get(stage_id)

        now = timezone.now()
        with transaction.atomic():
            updated = PaymentStage.objects.transition(
                stage.pk,
                "pending_verification",
                status="paid",
                paid_at=now,
                approved_by=approver,
                approved_at=now,
                updated_at=now,
            )
            if not updated:
                raise InvalidState("Payment stage is not pending verification.")
            stage.refresh_from_db()
            commission = PartnerService.record_commission(stage)

        logger.info("Stage %s approved by %s", stage.pk, approver.pk)

        project = stage.project
        get_notification_service().notify(
            project.client,
            PaymentApproved(
                project_id=project.pk,
                project_name=project.name,
                stage_id=stage.pk,
                stage_name=stage.name,
            ),
        )
        if commission is not None:
            PartnerService.announce_commission(commission)
        return stage

    @staticmethod
    def reject(stage_id, approver, reason):
        reason = (reason or "").strip()
        if not reason:
            raise ValidationFailure({"reason": "A rejection reason is required."})

        stage = StageAccessSelector.get(stage_id)

        with transaction.atomic():
            current = PaymentStage.objects.select_for_update().get(pk=stage.pk)
            now = timezone.now()
            payment_data = dict(current.payment_data or {})
            payment_data.update(
                {
                    "rejectedBy": approver.pk,
                    "rejectedAt": now.isoformat(),
                    "rejectionReason": reason,
                }
            )
            updated = PaymentStage.objects.transition(
                stage.pk,
                "pending_verification",
                status="available",
                payment_method=None,
                proof_file_url=None,
                payment_data=payment_data,
                updated_at=now,
            )
        if not updated:
            raise InvalidState("Payment stage is not pending verification.")

        logger.info("Stage %s rejected by %s: %s", stage.pk, approver.pk, reason)

        stage.refresh_from_db()
        project = stage.project
        get_notification_service().notify(
            project.client,
            PaymentRejected(
                project_id=project.pk,
                project_name=project.name,
                stage_id=stage.pk,
                stage_name=stage.name,
                reason=reason,
            ),
        )
        return stage

    @staticmethod
    def complete(stage_id, actor):
        """Mark a stage paid without a proof, e.g. cash received in person."""
        stage = StageAccessSelector.get(stage_id)

        now = timezone.now()
        with transaction.atomic():
            updated = PaymentStage.objects.transition(
                stage.pk,
                COMPLETABLE_STATUSES,
                status="paid",
                paid_at=now,
                approved_by=actor,
                approved_at=now,
                updated_at=now,
            )
            if not updated:
                raise InvalidState("Only available or pending verification stages can be completed.")
            stage.refresh_from_db()
            commission = PartnerService.record_commission(stage)

        logger.info("Stage %s completed by %s", stage.pk, actor.pk)

        project = stage.project
        get_notification_service().notify(
            project.client,
            PaymentApproved(
                project_id=project.pk,
                project_name=project.name,
                stage_id=stage.pk,
                stage_name=stage.name,
            ),
        )
        if commission is not None:
            PartnerService.announce_commission(commission)
        return stage

    # -----------------------------
    # ADMIN EDITS
    # -----------------------------

    @staticmethod
    def update(stage_id, changes):
        stage = StageAccessSelector.get(stage_id)

        new_status = changes.get("status")
        promote = False
        if new_status is not None and new_status != stage.status:
            if not (stage.status == "pending" and new_status == "available"):
                raise InvalidState("Only a pending stage can be made available.")
            promote = True

        fields = {}
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationFailure({"name": "Name is required."})
            fields["name"] = name
        if "required_progress" in changes:
            required_progress = int(changes["required_progress"])
            if not 0 <= required_progress <= 100:
                raise ValidationFailure(
                    {"required_progress": "Required progress must be in [0, 100]."}
                )
            if required_progress != stage.required_progress and stage.status != "pending":
                raise InvalidState("The progress gate can only change while a stage is pending.")
            fields["required_progress"] = required_progress

        now = timezone.now()
        if promote:
            updated = PaymentStage.objects.transition(
                stage.pk, "pending", status="available", updated_at=now, **fields
            )
            if not updated:
                raise InvalidState("Only a pending stage can be made available.")
        elif fields:
            PaymentStage.objects.filter(pk=stage.pk).update(updated_at=now, **fields)

        stage.refresh_from_db()
        if promote:
            logger.info("Stage %s made available", stage.pk)
            get_notification_service().notify(
                stage.project.client, _available_event(stage, stage.project)
            )
        return stage

    # -----------------------------
    # READS
    # -----------------------------

    @staticmethod
    def receipt(stage_id, user):
        stage = StageAccessSelector.get_for_user(stage_id, user)
        if not stage.proof_file_url:
            raise NotFound("No payment proof recorded for this stage.")

        data = stage.payment_data or {}
        return {
            "stage_id": stage.pk,
            "stage_name": stage.name,
            "status": stage.status,
            "payment_method": stage.payment_method,
            "proof_file_url": stage.proof_file_url,
            "original_file_name": data.get("originalFileName"),
            "file_info": data.get("fileInfo"),
            "confirmed_at": data.get("confirmedAt"),
        }

    @staticmethod
    def settlement_document(stage_id, user):
        stage = StageAccessSelector.get(stage_id)
        if stage.project.client_id != user.pk:
            raise Forbidden("You do not have access to this payment stage.")
        if stage.status != "paid":
            raise InvalidState("This stage has not been paid yet.")
        return SettlementDocument.for_stage(stage)
