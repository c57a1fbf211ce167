import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from apps.cores.exceptions import NotFound, ValidationFailure
from apps.notifications.events import (
    NewProjectMessage,
    ProjectCreated,
    ProjectStatusChanged,
    ProjectUpdated,
)
from apps.notifications.services import get_notification_service

from .models import Project, ProjectFile, ProjectMessage, ProjectTimeline

logger = logging.getLogger(__name__)

User = get_user_model()

DEFAULT_TIMELINE = (
    ("Analysis & planning", "Requirements gathering and project plan"),
    ("Design & architecture", "Interface design and system architecture"),
    ("Development phase 1", "Core features"),
    ("Development phase 2", "Remaining features and integrations"),
    ("Testing & QA", "Functional testing and fixes"),
    ("Final delivery", "Deployment and handover"),
)

ADMIN_EDITABLE_FIELDS = (
    "name", "description", "price", "status", "progress", "start_date", "delivery_date",
)
CLIENT_EDITABLE_FIELDS = ("name", "description")


def seed_timeline(project):
    """Create the standard six-step timeline once. Returns the rows created."""
    if ProjectTimeline.objects.filter(project=project).exists():
        return []
    rows = ProjectTimeline.objects.bulk_create(
        [
            ProjectTimeline(project=project, title=title, description=description)
            for title, description in DEFAULT_TIMELINE
        ]
    )
    logger.info("Seeded timeline for project %s", project.pk)
    return rows


class ProjectService:

    @staticmethod
    def create(*, creator, name, price, description="", client_id=None, **extra):
        if creator.has_admin_access() and client_id:
            client = User.objects.filter(id=client_id, is_active=True).first()
            if client is None:
                raise NotFound("Client not found.")
        else:
            client = creator

        project = Project.objects.create(
            client=client, name=name, description=description, price=price, **extra
        )
        logger.info("Project %s created for client %s", project.pk, client.pk)

        service = get_notification_service()
        service.notify(
            client,
            ProjectCreated(
                project_id=project.pk, project_name=project.name,
                client_name=client.display_name,
            ),
        )
        service.notify_admins(
            ProjectCreated(
                project_id=project.pk, project_name=project.name,
                client_name=client.display_name, for_admin=True,
            ),
            email=False,
        )
        return project

    @staticmethod
    def update(project, actor, changes):
        allowed = ADMIN_EDITABLE_FIELDS if actor.has_admin_access() else CLIENT_EDITABLE_FIELDS
        changed = {k: v for k, v in changes.items() if k in allowed and getattr(project, k) != v}
        if not changed:
            return project

        old_status = project.status
        if "status" in changed and changed["status"] not in dict(Project.STATUS):
            raise ValidationFailure({"status": f"Unknown status '{changed['status']}'."})

        for field, value in changed.items():
            setattr(project, field, value)
        project.save(update_fields=[*changed, "updated_at"])

        logger.info("Project %s updated by %s: %s", project.pk, actor.pk, sorted(changed))

        service = get_notification_service()
        if actor.has_admin_access():
            service.notify(
                project.client,
                ProjectUpdated(
                    project_id=project.pk,
                    project_name=project.name,
                    description=describe_changes(changed),
                    updated_by=actor.display_name,
                ),
            )

        if "status" in changed:
            event = ProjectStatusChanged(
                project_id=project.pk,
                project_name=project.name,
                old_status=old_status,
                new_status=project.status,
                updated_by=actor.display_name,
            )
            service.notify_admins(event, include_system_mailbox=True)

        return project

    @staticmethod
    def post_message(project, author, text):
        text = (text or "").strip()
        if not text:
            raise ValidationFailure({"message": "Message cannot be empty."})

        message = ProjectMessage.objects.create(project=project, author=author, message=text)

        event = NewProjectMessage(
            project_id=project.pk,
            project_name=project.name,
            sender_name=author.display_name,
            text=text,
        )
        service = get_notification_service()
        if author.has_admin_access():
            service.notify(project.client, event, email=False)
        else:
            service.notify_admins(event, email=False)
        return message

    @staticmethod
    def add_file(project, uploader, *, file_name, file_url, file_type=""):
        return ProjectFile.objects.create(
            project=project,
            uploaded_by=uploader,
            file_name=file_name,
            file_url=file_url,
            file_type=file_type,
        )


class TimelineService:

    @staticmethod
    def create(project, **fields):
        return ProjectTimeline.objects.create(project=project, **fields)

    @staticmethod
    @transaction.atomic
    def update(item, changes):
        for field, value in changes.items():
            setattr(item, field, value)
        if changes.get("status") == "completed" and item.completed_at is None:
            item.completed_at = timezone.now()
        elif "status" in changes and changes["status"] != "completed":
            item.completed_at = None
        item.save()
        return item


def describe_changes(changed):
    labels = {
        "name": "name", "description": "description", "price": "price",
        "status": "status", "progress": "progress", "start_date": "start date",
        "delivery_date": "delivery date",
    }
    parts = []
    for field, value in changed.items():
        if field == "progress":
            parts.append(f"progress {value}%")
        elif field == "description":
            parts.append("description updated")
        else:
            parts.append(f"{labels[field]} {value}")
    return ", ".join(parts)
