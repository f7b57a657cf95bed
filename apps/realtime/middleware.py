# apps/realtime/middleware.py - bearer credential on the websocket handshake
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
import logging

from apps.users.authentication import CustomJWTAuthentication

logger = logging.getLogger(__name__)


def token_from_scope(scope):
    query = parse_qs(scope.get('query_string', b'').decode())
    if query.get('token'):
        return query['token'][0]
    for name, value in scope.get('headers', []):
        if name == b'authorization':
            parts = value.decode().split()
            if len(parts) == 2 and parts[0] == 'Bearer':
                return parts[1]
    return None


@database_sync_to_async
def get_user_for_token(raw_token):
    authenticator = CustomJWTAuthentication()
    try:
        validated_token = authenticator.get_validated_token(raw_token)
        return authenticator.get_user(validated_token)
    except (AuthenticationFailed, InvalidToken, TokenError) as e:
        logger.warning(f"Websocket token rejected: {e}")
        return AnonymousUser()


class JWTAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        raw_token = token_from_scope(scope)
        scope['user'] = await get_user_for_token(raw_token) if raw_token else AnonymousUser()
        return await super().__call__(scope, receive, send)


def JWTAuthMiddlewareStack(inner):
    return JWTAuthMiddleware(inner)
