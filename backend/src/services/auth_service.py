"""JWT session management for the feedback API.

Credentials are not checked here; the web client's login is simulated and
only hands out a user ID and a role. This service signs and verifies the
resulting access tokens.
"""

import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError


class UserRole(str, Enum):
    """Roles known to the application."""

    USER = "user"
    ADMIN = "admin"


@dataclass
class AuthenticatedUser:
    """Caller identity taken from a verified token."""

    user_id: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class AuthenticationError(Exception):
    """Authentication error."""

    pass


class AuthService:
    """Service for issuing and verifying access tokens."""

    JWT_ALGORITHM = "HS256"
    JWT_EXPIRATION_HOURS = 24 * 7  # 7 days

    def __init__(self, jwt_secret: str | None = None):
        """Initialize auth service.

        Args:
            jwt_secret: Secret for signing JWTs
        """
        self.jwt_secret = jwt_secret or os.environ.get(
            "JWT_SECRET_KEY", "dev-secret-change-in-prod"
        )

    def create_access_token(self, user_id: str, role: UserRole | str = UserRole.USER) -> dict[str, Any]:
        """Create an access token for a user.

        Args:
            user_id: User ID
            role: Role claim to embed

        Returns:
            Dict with access_token, token_type and expires_in
        """
        now = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "role": UserRole(role).value,
            "type": "access",
            "iat": now,
            "exp": now + timedelta(hours=self.JWT_EXPIRATION_HOURS),
        }
        access_token = jwt.encode(payload, self.jwt_secret, algorithm=self.JWT_ALGORITHM)

        return {
            "access_token": access_token,
            "token_type": "Bearer",
            "expires_in": self.JWT_EXPIRATION_HOURS * 3600,
        }

    def verify_access_token(self, token: str) -> AuthenticatedUser:
        """Verify an access token.

        Args:
            token: JWT access token

        Returns:
            The authenticated caller; tokens without a role claim are users

        Raises:
            AuthenticationError: If token is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.JWT_ALGORITHM],
                options={"verify_exp": True},
            )
        except ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except JWTError as e:
            raise AuthenticationError(f"Invalid token: {str(e)}")

        if payload.get("type") != "access":
            raise AuthenticationError("Invalid token type")

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Missing user ID in token")

        try:
            role = UserRole(payload.get("role", UserRole.USER.value))
        except ValueError:
            raise AuthenticationError("Unknown role in token")

        return AuthenticatedUser(user_id=user_id, role=role)
