import logging

from django.conf import settings
from django.db.models import Count, Q

from apps.cores.exceptions import Forbidden, NotFound, ValidationFailure
from apps.notifications.events import (
    ContactConfirmation,
    ContactReceived,
    TicketCreated,
    TicketResponded,
)
from apps.notifications.services import get_notification_service
from apps.projects.models import Project

from .models import Ticket, TicketResponse

logger = logging.getLogger(__name__)


class TicketService:

    @staticmethod
    def get_for_user(ticket_id, user):
        ticket = Ticket.objects.select_related("user").filter(id=ticket_id).first()
        if ticket is None:
            raise NotFound("Ticket not found.")
        if not user.has_admin_access() and ticket.user_id != user.pk:
            raise Forbidden("You do not have access to this ticket.")
        return ticket

    @staticmethod
    def create(user, *, title, description, priority="medium", project_id=None):
        project = None
        if project_id:
            project = Project.objects.filter(id=project_id).first()
            if project is None:
                raise NotFound("Project not found.")
            if not user.has_admin_access() and project.client_id != user.pk:
                raise Forbidden("You do not have access to this project.")

        ticket = Ticket.objects.create(
            user=user,
            project=project,
            title=title,
            description=description,
            priority=priority or "medium",
        )
        logger.info("Ticket %s opened by %s", ticket.pk, user.pk)

        get_notification_service().notify_admins(
            TicketCreated(
                ticket_id=ticket.pk,
                ticket_title=ticket.title,
                author_name=user.display_name,
            ),
            email=False,
        )
        return ticket

    @staticmethod
    def respond(ticket, author, message):
        message = (message or "").strip()
        if not message:
            raise ValidationFailure({"message": "Message cannot be empty."})

        from_support = author.has_admin_access()
        response = TicketResponse.objects.create(
            ticket=ticket, user=author, message=message, is_from_support=from_support
        )

        if from_support and ticket.status == "open":
            ticket.status = "in_progress"
            ticket.save(update_fields=["status", "updated_at"])

        event = TicketResponded(
            ticket_id=ticket.pk,
            ticket_title=ticket.title,
            responder_name=author.display_name,
            text=message,
            from_support=from_support,
        )
        service = get_notification_service()
        if from_support:
            service.notify(ticket.user, event)
        else:
            service.notify_admins(event, email=False)
        return response

    @staticmethod
    def stats():
        return Ticket.objects.aggregate(
            total=Count("id"),
            open=Count("id", filter=Q(status="open")),
            in_progress=Count("id", filter=Q(status="in_progress")),
            resolved=Count("id", filter=Q(status="resolved")),
            closed=Count("id", filter=Q(status="closed")),
            urgent=Count("id", filter=Q(priority="urgent") & ~Q(status__in=["resolved", "closed"])),
        )


class ContactService:
    """Public contact form: email only, nothing is stored."""

    @staticmethod
    def submit(*, full_name, email, message, phone="", company="", service=""):
        notifications = get_notification_service()
        notifications.email_only(
            settings.SYSTEM_MAILBOX,
            ContactReceived(
                full_name=full_name,
                email=email,
                text=message,
                phone=phone,
                company=company,
                service=service,
            ),
        )
        notifications.email_only(email, ContactConfirmation(full_name=full_name))
        logger.info("Contact request from %s forwarded", email)
