from datetime import date
from decimal import Decimal
from unittest import mock

import pytest
from django.core import mail
from django.db import DatabaseError

from apps.notifications import events
from apps.notifications.connections import ConnectionManager
from apps.notifications.models import Notification
from apps.notifications.services import CeleryMailer, NotificationService
from apps.notifications.tasks import send_html_email

from .conftest import BrokenMailer

pytestmark = pytest.mark.django_db


def _approved(project):
    return events.PaymentApproved(
        project_id=project.pk,
        project_name=project.name,
        stage_id=11,
        stage_name="Kickoff",
    )


class ExplodingLayer:
    async def send(self, channel, message):
        raise RuntimeError("layer gone")


# -----------------------------
# FAN-OUT
# -----------------------------

def test_notify_persists_and_emails(notification_service, mailer, layer, project, client_user):
    notification = notification_service.notify(client_user, _approved(project))

    assert notification.pk is not None
    assert notification.event == "payment_approved"
    assert notification.notif_type == "success"
    assert notification.data["stage_id"] == 11
    assert notification.is_read is False

    assert mailer.recipients() == [client_user.email]
    assert "Kickoff" in mailer.sent[0]["html"]
    # no live socket, nothing pushed
    assert layer.messages == []


def test_push_reaches_every_open_channel(notification_service, connections, layer, project, client_user):
    connections.register(client_user.pk, "tab-1")
    connections.register(client_user.pk, "tab-2")

    notification = notification_service.notify(client_user, _approved(project), email=False)

    assert sorted(channel for channel, _ in layer.messages) == ["tab-1", "tab-2"]
    channel, message = layer.messages[0]
    assert message["type"] == "notification.message"
    assert message["payload"]["id"] == notification.pk
    assert message["payload"]["event"] == "payment_approved"


def test_push_failure_does_not_block_email(mailer, project, client_user):
    connections = ConnectionManager(channel_layer=ExplodingLayer())
    connections.register(client_user.pk, "tab-1")
    service = NotificationService(connections, mailer)

    notification = service.notify(client_user, _approved(project))

    assert notification is not None
    assert mailer.recipients() == [client_user.email]


def test_email_failure_is_swallowed(connections, project, client_user):
    service = NotificationService(connections, BrokenMailer())

    notification = service.notify(client_user, _approved(project))

    assert Notification.objects.filter(pk=notification.pk).exists()


def test_persist_failure_skips_push_but_still_emails(
    notification_service, connections, layer, mailer, project, client_user
):
    connections.register(client_user.pk, "tab-1")

    with mock.patch.object(Notification.objects, "create", side_effect=DatabaseError("disk full")):
        result = notification_service.notify(client_user, _approved(project))

    assert result is None
    assert layer.messages == []
    assert mailer.recipients() == [client_user.email]


def test_unformattable_event_skips_row_without_raising(
    notification_service, connections, layer, mailer, project, client_user
):
    connections.register(client_user.pk, "tab-1")
    event = _approved(project)

    with mock.patch.object(type(event), "message", side_effect=KeyError("stage_name")):
        result = notification_service.notify(client_user, event)

    assert result is None
    assert not Notification.objects.exists()
    assert layer.messages == []
    assert mailer.sent == []


def test_notify_admins_with_system_mailbox(notification_service, mailer, admin_user, client_user, project):
    second_admin = type(admin_user).objects.create_user(
        email="boss@agency.test", password="secret-pass-1", role="admin"
    )
    event = events.TicketCreated(ticket_id=1, ticket_title="Broken link", author_name="Carlos")

    created = notification_service.notify_admins(event, include_system_mailbox=True)

    assert {n.recipient_id for n in created} == {admin_user.pk, second_admin.pk}
    assert sorted(mailer.recipients()) == sorted(
        [admin_user.email, second_admin.email, "ops@agency.test"]
    )
    assert not Notification.objects.filter(recipient=client_user).exists()


def test_notify_admins_without_email(notification_service, mailer, admin_user):
    event = events.TicketCreated(ticket_id=1, ticket_title="Broken link", author_name="Carlos")

    notification_service.notify_admins(event, email=False)

    assert Notification.objects.filter(recipient=admin_user).count() == 1
    assert mailer.sent == []


def test_email_only_writes_no_row(notification_service, mailer, project):
    assert notification_service.email_only("someone@else.test", _approved(project)) is True
    assert mailer.recipients() == ["someone@else.test"]
    assert not Notification.objects.exists()


def test_email_only_without_address(notification_service, mailer, project):
    assert notification_service.email_only("", _approved(project)) is False
    assert mailer.sent == []


def test_celery_mailer_queues_task():
    with mock.patch.object(send_html_email, "delay") as delay:
        CeleryMailer().send("client@acme.test", "Hello", "<p>Hi</p>")

    delay.assert_called_once_with("client@acme.test", "Hello", "<p>Hi</p>")


def test_send_html_email_delivers_html():
    assert send_html_email.run("client@acme.test", "Hello", "<p>Hi</p>") == 1

    message = mail.outbox[0]
    assert message.to == ["client@acme.test"]
    assert message.subject == "Hello"
    assert message.content_subtype == "html"


def test_send_html_email_accepts_many_recipients():
    assert send_html_email.run(["a@x.test", "b@x.test"], "Hi", "<p>x</p>") == 2
    assert mail.outbox[0].to == ["a@x.test", "b@x.test"]


# -----------------------------
# CONNECTIONS
# -----------------------------

def test_connection_manager_tracks_channels():
    manager = ConnectionManager(channel_layer=object())

    manager.register(5, "a")
    manager.register("5", "b")
    assert manager.lookup(5) == {"a", "b"}

    manager.unregister(5, "a")
    assert manager.is_connected(5)

    manager.unregister(5, "b")
    assert not manager.is_connected(5)
    assert manager.lookup(5) == set()


def test_unregister_all_channels_of_user():
    manager = ConnectionManager(channel_layer=object())
    manager.register(1, "a")
    manager.register(1, "b")

    manager.unregister(1)

    assert manager.lookup(1) == set()
    # unknown users are ignored
    manager.unregister(99, "x")


def test_push_to_offline_user_sends_nothing(connections, layer):
    assert connections.push(42, {"type": "notification"}) == 0
    assert layer.messages == []


# -----------------------------
# EVENTS
# -----------------------------

def test_rejection_message_carries_reason():
    event = events.PaymentRejected(
        project_id=1,
        project_name="Shop",
        stage_id=2,
        stage_name="Kickoff",
        reason="wrong amount",
    )

    context = event.email_context("Carlos")

    assert event.notif_type == "error"
    assert "wrong amount" in event.message()
    assert context["recipient_name"] == "Carlos"
    assert context["message"] == event.message()


def test_status_change_uses_readable_labels():
    event = events.ProjectStatusChanged(
        project_id=1,
        project_name="Shop",
        old_status="pending",
        new_status="in_progress",
        updated_by="Ana",
    )

    assert "In progress" in event.message()
    assert event.email_template == "emails/project_status_changed.html"


def test_event_data_is_json_safe():
    event = events.InvoiceIssued(
        invoice_id=3,
        invoice_number="INV-2025-003",
        project_name="Shop",
        amount=Decimal("99.90"),
        due_date=date(2025, 3, 1),
    )

    assert event.data() == {
        "invoice_id": 3,
        "invoice_number": "INV-2025-003",
        "project_name": "Shop",
        "amount": "99.90",
        "due_date": "2025-03-01",
    }
    assert "01/03/2025" in event.message()


def test_admin_notice_level_sets_type():
    event = events.AdminNotice(heading="Maintenance", body="Tonight at 10", level="warning")

    assert event.notif_type == "warning"
    assert event.tag == "admin_notice"


@pytest.mark.parametrize(
    "event",
    [
        events.PaymentStageAvailable(
            project_id=1, project_name="Shop", stage_id=1, stage_name="Kickoff",
            amount=Decimal("100"), percentage=Decimal("10"),
        ),
        events.PaymentProofReceived(
            project_id=1, project_name="Shop", stage_id=1, stage_name="Kickoff",
            amount=Decimal("100"), client_name="Carlos", payment_method="bank_transfer",
            file_description="proof.pdf",
        ),
        events.BudgetNegotiationAccepted(
            project_id=1, project_name="Shop", negotiation_id=1, client_name="Carlos",
            client_email="c@x.test", original_price=Decimal("100"), accepted_price=Decimal("90"),
        ),
        events.Welcome(full_name="Carlos", email="c@x.test"),
    ],
)
def test_dedicated_templates_render(event):
    subject, html = event.render_email("Carlos")

    assert subject
    assert "Carlos" in html
    assert "<html" in html.lower()
