import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from apps.cores.exceptions import Forbidden, InvalidState, NotFound, ValidationFailure
from apps.notifications.events import (
    BudgetNegotiationAccepted,
    BudgetNegotiationProposed,
    BudgetNegotiationRejected,
)
from apps.notifications.services import get_notification_service
from apps.projects.models import Project

from .models import BudgetNegotiation

logger = logging.getLogger(__name__)

User = get_user_model()

RESPONSES = ("accepted", "rejected", "countered")


def _notify_other_party(actor, project, event):
    """Admins answer to the client; anyone else answers to the admins."""
    service = get_notification_service()
    if actor.has_admin_access():
        service.notify(project.client, event)
    else:
        service.notify_admins(event)


def _check_access(project, user):
    if not user.has_admin_access() and project.client_id != user.pk:
        raise Forbidden("You do not have access to this project.")


def _check_responder(negotiation, responder):
    """The proposal is answered by the other side, never by its author or a peer admin."""
    proposer = negotiation.proposed_by
    if responder.pk == proposer.pk or (
        responder.has_admin_access() and proposer.has_admin_access()
    ):
        raise Forbidden("A proposal must be answered by the other party.")


def propose(project_id, proposer, proposed_price, message=""):
    project = Project.objects.select_related("client").filter(id=project_id).first()
    if project is None:
        raise NotFound("Project not found.")
    _check_access(project, proposer)

    if proposed_price is None or proposed_price <= 0:
        raise ValidationFailure({"proposed_price": "Proposed price must be positive."})

    negotiation = BudgetNegotiation.objects.create(
        project=project,
        proposed_by=proposer,
        original_price=project.price,
        proposed_price=proposed_price,
        message=message or "",
    )
    logger.info(
        "Budget proposal %s on project %s by %s: %s",
        negotiation.pk, project.pk, proposer.pk, proposed_price,
    )

    _notify_other_party(
        proposer,
        project,
        BudgetNegotiationProposed(
            project_id=project.pk,
            project_name=project.name,
            negotiation_id=negotiation.pk,
            proposed_price=negotiation.proposed_price,
            note=negotiation.message,
        ),
    )
    return negotiation


def respond(negotiation_id, responder, status, message="", counter_price=None):
    """
    Answer a pending proposal.

    Returns the negotiation the caller should show next: the same row for
    accept/reject, the freshly opened counter-proposal for ``countered``.
    """
    if status not in RESPONSES:
        raise ValidationFailure({"status": f"Must be one of {', '.join(RESPONSES)}."})

    negotiation = (
        BudgetNegotiation.objects
        .select_related("project", "project__client", "proposed_by")
        .filter(id=negotiation_id)
        .first()
    )
    if negotiation is None:
        raise NotFound("Negotiation not found.")

    project = negotiation.project
    _check_access(project, responder)
    _check_responder(negotiation, responder)

    if status == "countered" and (counter_price is None or counter_price <= 0):
        raise ValidationFailure({"counter_price": "A positive counter price is required."})

    now = timezone.now()
    with transaction.atomic():
        updated = BudgetNegotiation.objects.filter(
            id=negotiation.pk, status="pending"
        ).update(status=status, responded_at=now)
        if not updated:
            raise InvalidState("Only pending negotiations can be answered.")

        counter = None
        if status == "accepted":
            Project.objects.filter(pk=project.pk).update(
                price=negotiation.proposed_price, status="in_progress", updated_at=now
            )
        elif status == "countered":
            counter = BudgetNegotiation.objects.create(
                project=project,
                proposed_by=responder,
                original_price=negotiation.proposed_price,
                proposed_price=counter_price,
                message=message or "",
            )

    negotiation.refresh_from_db()
    project.refresh_from_db()
    logger.info("Negotiation %s %s by %s", negotiation.pk, status, responder.pk)

    if status == "accepted":
        event = BudgetNegotiationAccepted(
            project_id=project.pk,
            project_name=project.name,
            negotiation_id=negotiation.pk,
            client_name=project.client.display_name,
            client_email=project.client.email,
            original_price=negotiation.original_price,
            accepted_price=negotiation.proposed_price,
            note=message or "",
        )
        _notify_other_party(responder, project, event)

        # Admins always get the acceptance by email, plus the operator copy
        service = get_notification_service()
        if responder.has_admin_access():
            for admin in User.objects.admins():
                service.email_only(admin.email, event)
        service.email_only(settings.SYSTEM_MAILBOX, event)
        return negotiation

    if status == "rejected":
        _notify_other_party(
            responder,
            project,
            BudgetNegotiationRejected(
                project_id=project.pk,
                project_name=project.name,
                negotiation_id=negotiation.pk,
                proposed_price=negotiation.proposed_price,
                note=message or "",
            ),
        )
        return negotiation

    _notify_other_party(
        responder,
        project,
        BudgetNegotiationProposed(
            project_id=project.pk,
            project_name=project.name,
            negotiation_id=counter.pk,
            proposed_price=counter.proposed_price,
            note=counter.message,
            is_counter_proposal=True,
        ),
    )
    return counter


def for_project(project):
    return BudgetNegotiation.objects.filter(project=project).select_related("proposed_by")
