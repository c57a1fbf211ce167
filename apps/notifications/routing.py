from django.urls import path

from apps.notifications.consumers import NotificationConsumer
from apps.notifications.services import connection_manager

websocket_urlpatterns = [
    path("ws/notifications/", NotificationConsumer.as_asgi(connections=connection_manager)),
]
