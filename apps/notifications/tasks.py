import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import EmailMessage

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=10,
    retry_kwargs={"max_retries": 3},
)
def send_html_email(self, to, subject, html):
    """Deliver one rendered notification email."""
    recipients = [to] if isinstance(to, str) else list(to)

    email = EmailMessage(
        subject=subject,
        body=html,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=recipients,
    )
    email.content_subtype = "html"
    email.send(fail_silently=False)

    logger.info("Email '%s' sent to %s", subject, ", ".join(recipients))
    return len(recipients)
