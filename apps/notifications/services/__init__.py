from apps.notifications.connections import ConnectionManager
from apps.notifications.services.dispatcher import CeleryMailer, NotificationService

connection_manager = ConnectionManager()

_service = None


def get_notification_service():
    global _service
    if _service is None:
        _service = NotificationService(connection_manager, CeleryMailer())
    return _service


def set_notification_service(service):
    """Swap the process-wide service, e.g. for a fake mailer in tests."""
    global _service
    _service = service


__all__ = [
    "CeleryMailer",
    "ConnectionManager",
    "NotificationService",
    "connection_manager",
    "get_notification_service",
    "set_notification_service",
]
