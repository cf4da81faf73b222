"""
JWT token utilities

Tokens are HS256 JWTs whose "sub" claim is the user id. authenticate() is
the only thing the task services need from this module: token in, user id
out, UnauthenticatedError otherwise.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from togo.config.settings import TogoSettings
from togo.errors import UnauthenticatedError
from togo.logger import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


class TokenService:
    """Issue and verify user tokens"""

    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl_hours: int = 24):
        if not secret_key:
            raise ValueError("secret_key is required")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = timedelta(hours=ttl_hours)

    @classmethod
    def from_settings(cls, settings: TogoSettings) -> "TokenService":
        return cls(settings.jwt_secret_key, settings.jwt_algorithm, settings.token_ttl_hours)

    def issue(self, user_id: int, now: Optional[datetime] = None) -> str:
        """Create a token for user_id valid for the configured TTL"""
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def authenticate(self, token: Optional[str]) -> int:
        """
        Verify a token and return its user id

        Raises:
            UnauthenticatedError: missing, malformed, expired or forged token
        """
        if not token:
            raise UnauthenticatedError("missing token")
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
            return int(payload["sub"])
        except (jwt.InvalidTokenError, ValueError, TypeError) as e:
            logger.debug(f"Token rejected: {e}")
            raise UnauthenticatedError("invalid credentials") from e

    def authenticate_header(self, header: Optional[str]) -> int:
        """Authenticate an "Authorization: Bearer <token>" header value"""
        return self.authenticate(parse_bearer(header))


def parse_bearer(header: Optional[str]) -> str:
    """
    Extract the token from a Bearer authorization header

    Raises:
        UnauthenticatedError: header missing or not in "Bearer <token>" form
    """
    if not header:
        raise UnauthenticatedError("bad header value given")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_PREFIX.strip() or not parts[1]:
        raise UnauthenticatedError("invalid formatted authorization header")
    return parts[1]
