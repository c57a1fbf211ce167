import logging
import threading
from collections import defaultdict

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Tracks which websocket channels belong to which user.

    A user may have several tabs open, so each user id maps to a set of
    channel names. Pushes go straight to those channels through the
    channel layer; a user with no live channel simply gets nothing pushed.
    """

    def __init__(self, channel_layer=None):
        self._channel_layer = channel_layer
        self._channels = defaultdict(set)
        self._lock = threading.Lock()

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    def register(self, user_id, channel_name):
        with self._lock:
            self._channels[int(user_id)].add(channel_name)
        logger.debug("Registered channel %s for user %s", channel_name, user_id)

    def unregister(self, user_id, channel_name=None):
        with self._lock:
            channels = self._channels.get(int(user_id))
            if channels is None:
                return
            if channel_name is None:
                channels.clear()
            else:
                channels.discard(channel_name)
            if not channels:
                del self._channels[int(user_id)]
        logger.debug("Unregistered channel %s for user %s", channel_name, user_id)

    def lookup(self, user_id):
        with self._lock:
            return set(self._channels.get(int(user_id), ()))

    def is_connected(self, user_id):
        return bool(self.lookup(user_id))

    def clear(self):
        with self._lock:
            self._channels.clear()

    def push(self, user_id, payload):
        """Send ``payload`` to every live channel of the user. Returns the count."""
        channels = self.lookup(user_id)
        for channel_name in channels:
            async_to_sync(self.channel_layer.send)(
                channel_name,
                {"type": "notification.message", "payload": payload},
            )
        return len(channels)
