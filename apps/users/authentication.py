# apps/users/authentication.py
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken
import logging

logger = logging.getLogger(__name__)


class CustomJWTAuthentication(JWTAuthentication):
    """
    JWT authentication that attaches the role claim to the user object.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)

        if not user.is_active:
            logger.error(f"Inactive user attempted authentication: {user.email}")
            raise InvalidToken("User account is disabled")

        # Role travels in the token so terminals and sockets agree on it
        user.role = validated_token.get("role", user.role)
        logger.debug(f"Authenticated {user.email} (role: {user.role})")
        return user
