import asyncio
import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)

HEARTBEAT_CLOSE_CODE = 4000


def _now():
    return timezone.now().isoformat()


class NotificationConsumer(AsyncWebsocketConsumer):
    """
    Per-user notification socket.

    The client authenticates with ``{"type": "auth", "userId": ...}`` after
    connecting; from then on every notification stored for that user is
    pushed here as it happens. Nothing is replayed for sockets that were
    offline, the REST list covers that.
    """

    connections = None

    def __init__(self, *args, connections=None, **kwargs):
        super().__init__(*args, **kwargs)
        if connections is None:
            from apps.notifications.services import connection_manager
            connections = connection_manager
        self.connections = connections
        self.user_id = None
        self.alive = True
        self.heartbeat_task = None

    async def connect(self):
        await self.accept()
        await self.send_json(
            {
                "type": "welcome",
                "message": "Connected to the notification service",
                "timestamp": _now(),
            }
        )
        self.heartbeat_task = asyncio.ensure_future(self.heartbeat())
        logger.debug("Notification socket %s accepted", self.channel_name)

    async def disconnect(self, close_code):
        if self.heartbeat_task is not None:
            self.heartbeat_task.cancel()
            self.heartbeat_task = None
        if self.user_id is not None:
            self.connections.unregister(self.user_id, self.channel_name)
            logger.info("User %s disconnected (%s)", self.user_id, close_code)

    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            await self.send_json({"type": "error", "message": "Invalid JSON message"})
            return

        message_type = data.get("type") if isinstance(data, dict) else None

        if message_type == "auth":
            await self.authenticate(data)
        elif message_type == "pong":
            self.alive = True
        else:
            await self.send_json({"type": "echo", "data": data, "timestamp": _now()})

    # -----------------------------
    # AUTH
    # -----------------------------

    async def authenticate(self, data):
        user_id = await self.resolve_user_id(data.get("userId"), data.get("token"))
        if user_id is None:
            await self.send_json(
                {
                    "type": "auth_error",
                    "message": "Authentication failed",
                    "timestamp": _now(),
                }
            )
            return

        if self.user_id is not None and self.user_id != user_id:
            self.connections.unregister(self.user_id, self.channel_name)

        self.user_id = user_id
        self.connections.register(user_id, self.channel_name)
        logger.info("User %s authenticated on %s", user_id, self.channel_name)

        await self.send_json(
            {
                "type": "auth_success",
                "message": "Authenticated",
                "userId": user_id,
                "timestamp": _now(),
            }
        )

    async def resolve_user_id(self, raw_user_id, token):
        try:
            user_id = int(raw_user_id)
        except (TypeError, ValueError):
            return None

        if token:
            try:
                claimed = int(AccessToken(token)["user_id"])
            except (TokenError, KeyError, TypeError, ValueError):
                logger.info("Rejected websocket auth with invalid token")
                return None
            if claimed != user_id:
                return None
        else:
            scope_user = self.scope.get("user")
            if getattr(scope_user, "is_authenticated", False) and scope_user.pk != user_id:
                return None

        if not await self.user_is_active(user_id):
            return None
        return user_id

    @database_sync_to_async
    def user_is_active(self, user_id):
        from django.contrib.auth import get_user_model

        return get_user_model().objects.filter(id=user_id, is_active=True).exists()

    # -----------------------------
    # HEARTBEAT
    # -----------------------------

    async def heartbeat(self):
        interval = float(settings.NOTIFICATIONS_HEARTBEAT_SECONDS)
        while True:
            await asyncio.sleep(interval)
            if not self.alive:
                logger.info("Closing unresponsive socket %s", self.channel_name)
                if self.user_id is not None:
                    self.connections.unregister(self.user_id, self.channel_name)
                    self.user_id = None
                self.heartbeat_task = None
                await self.close(code=HEARTBEAT_CLOSE_CODE)
                return
            self.alive = False
            await self.send_json({"type": "ping"})

    # -----------------------------
    # SERVER PUSH
    # -----------------------------

    async def notification_message(self, event):
        await self.send_json(event["payload"])

    async def send_json(self, content):
        await self.send(text_data=json.dumps(content))
