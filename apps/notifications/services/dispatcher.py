import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction

from apps.notifications.models import Notification
from apps.notifications.tasks import send_html_email

logger = logging.getLogger(__name__)


class CeleryMailer:
    """Queues rendered emails on the Celery worker."""

    def send(self, to, subject, html):
        send_html_email.delay(to, subject, html)


class NotificationService:
    """
    Delivers one domain event to one recipient over three channels:

    1. a ``Notification`` row (always first; if it cannot be written the
       recipient is skipped for the push, the email is still attempted)
    2. a websocket push, only when the user currently has a live connection
    3. an email through the mailer

    Channels 2 and 3 are independent. A failure in either one is logged
    and never reaches the caller, so a business operation that already
    committed is never undone by a broken mail server.
    """

    def __init__(self, connections, mailer):
        self.connections = connections
        self.mailer = mailer

    # -----------------------------
    # CHANNELS
    # -----------------------------

    def _persist(self, user, event):
        try:
            title, message = event.title(), event.message()
        except Exception:
            logger.exception("Could not format %s notification for user %s", event.tag, user.pk)
            return None
        try:
            with transaction.atomic():
                return Notification.objects.create(
                    recipient=user,
                    title=title,
                    message=message,
                    notif_type=event.notif_type,
                    event=event.tag,
                    data=event.data(),
                )
        except DatabaseError:
            logger.exception(
                "Could not store %s notification for user %s", event.tag, user.pk
            )
            return None

    def _push(self, user, notification):
        try:
            delivered = self.connections.push(user.pk, notification.as_push_payload())
        except Exception:
            logger.warning(
                "Websocket push of notification %s to user %s failed",
                notification.pk, user.pk, exc_info=True,
            )
            return 0
        if delivered:
            logger.debug("Pushed notification %s to %d channel(s)", notification.pk, delivered)
        return delivered

    def _email(self, address, event, recipient_name=""):
        if not address:
            return False
        try:
            subject, html = event.render_email(recipient_name)
            self.mailer.send(address, subject, html)
        except Exception:
            logger.warning(
                "Email for %s to %s could not be queued", event.tag, address, exc_info=True
            )
            return False
        return True

    # -----------------------------
    # PUBLIC API
    # -----------------------------

    def notify(self, user, event, email=True):
        notification = self._persist(user, event)
        if notification is not None and self.connections.is_connected(user.pk):
            self._push(user, notification)

        if email:
            self._email(user.email, event, user.display_name)

        return notification

    def notify_many(self, users, event, email=True):
        created = []
        for user in users:
            notification = self.notify(user, event, email=email)
            if notification is not None:
                created.append(notification)
        return created

    def notify_admins(self, event, include_system_mailbox=False, email=True):
        User = get_user_model()
        created = self.notify_many(User.objects.admins(), event, email=email)

        if include_system_mailbox:
            self.email_only(settings.SYSTEM_MAILBOX, event)

        logger.info("Event %s delivered to %d admin(s)", event.tag, len(created))
        return created

    def email_only(self, address, event):
        return self._email(address, event)
