from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.notifications.connections import ConnectionManager
from apps.notifications.services import NotificationService, set_notification_service
from apps.projects.models import Project

User = get_user_model()


class FakeMailer:
    """Collects outgoing emails instead of queueing them."""

    def __init__(self):
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})

    def recipients(self):
        return [mail["to"] for mail in self.sent]


class BrokenMailer:
    def send(self, to, subject, html):
        raise ConnectionError("smtp down")


class RecordingLayer:
    """Channel layer stand-in that remembers what was sent where."""

    def __init__(self):
        self.messages = []

    async def send(self, channel, message):
        self.messages.append((channel, message))


@pytest.fixture(autouse=True)
def _test_settings(settings):
    settings.SYSTEM_MAILBOX = "ops@agency.test"
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    settings.CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def layer():
    return RecordingLayer()


@pytest.fixture
def connections(layer):
    return ConnectionManager(channel_layer=layer)


@pytest.fixture(autouse=True)
def notification_service(connections, mailer):
    service = NotificationService(connections, mailer)
    set_notification_service(service)
    yield service
    set_notification_service(None)


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email="admin@agency.test", password="secret-pass-1", role="admin", full_name="Ana Admin"
    )


@pytest.fixture
def client_user(db):
    return User.objects.create_user(
        email="client@acme.test", password="secret-pass-1", role="client", full_name="Carlos Client"
    )


@pytest.fixture
def other_client(db):
    return User.objects.create_user(
        email="other@acme.test", password="secret-pass-1", role="client", full_name="Olga Other"
    )


@pytest.fixture
def partner_user(db):
    return User.objects.create_user(
        email="partner@agency.test", password="secret-pass-1", role="partner", full_name="Pablo Partner"
    )


@pytest.fixture
def project(client_user):
    return Project.objects.create(
        client=client_user, name="Shop redesign", description="New storefront", price=Decimal("1000.00")
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_api(api_client, admin_user):
    api_client.force_authenticate(user=admin_user)
    return api_client


@pytest.fixture
def client_api(client_user):
    api = APIClient()
    api.force_authenticate(user=client_user)
    return api


@pytest.fixture
def other_api(other_client):
    api = APIClient()
    api.force_authenticate(user=other_client)
    return api
