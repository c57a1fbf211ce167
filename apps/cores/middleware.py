import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.db import close_old_connections

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(BaseMiddleware):
    """
    Resolves `?token=<access token>` on the websocket URL into scope["user"].
    Sockets without a valid token stay anonymous; the consumer decides what
    an anonymous socket may do.
    """

    async def __call__(self, scope, receive, send):
        # Lazy imports to avoid AppRegistryNotReady
        from django.contrib.auth.models import AnonymousUser
        from django.contrib.auth import get_user_model
        from rest_framework_simplejwt.exceptions import TokenError
        from rest_framework_simplejwt.tokens import AccessToken

        User = get_user_model()
        await database_sync_to_async(close_old_connections)()

        query_string = parse_qs(scope.get("query_string", b"").decode())
        token = query_string.get("token")
        scope["user"] = AnonymousUser()

        if token:
            try:
                access_token = AccessToken(token[0])
                scope["user"] = await User.objects.aget(id=access_token["user_id"], is_active=True)
                logger.debug("websocket user resolved: %s", scope["user"].id)
            except (TokenError, KeyError, User.DoesNotExist) as e:
                logger.info("websocket token rejected: %s", e)

        return await super().__call__(scope, receive, send)
