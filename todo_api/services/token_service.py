"""Session token issuance and verification (HS256 JWT)."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from pydantic import ValidationError

from todo_api.config import Settings
from todo_api.exceptions import AuthenticationFailed, UnauthorizedError
from todo_api.models.user import User
from todo_api.repositories.users import UserRepository
from todo_api.schemas.auth import TokenClaims

logger = logging.getLogger(__name__)


class TokenIssuer:
    """Signs and verifies session tokens.

    Tokens carry ``sub`` (the user id, as a string), ``email``, ``name``,
    ``picture``, ``iat`` and ``exp``. Nothing is stored server-side: a token
    is revoked by deleting its user.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expires_minutes: int = 60 * 24 * 7):
        if not secret:
            raise ValueError("A signing secret is required")
        self.secret = secret
        self.algorithm = algorithm
        self.expires_delta = timedelta(minutes=expires_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )

    def issue(self, user_id: int, email: str, name: Optional[str], picture: Optional[str]) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "name": name or None,
            "picture": picture or None,
            "iat": int(now.timestamp()),
            "exp": int((now + self.expires_delta).timestamp()),
        }
        logger.debug("Issuing token for user %s", user_id)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> TokenClaims:
        """Check signature, expiry and payload shape; does not touch the database."""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AuthenticationFailed("Token expired")
        except JWTError as exc:
            logger.warning("Rejected token: %s", exc)
            raise AuthenticationFailed("Invalid token")

        try:
            return TokenClaims(**payload)
        except ValidationError:
            logger.warning("Rejected token with malformed payload")
            raise AuthenticationFailed("Invalid token")

    def verify(self, token: str, users: UserRepository) -> User:
        """Decode the token and resolve its subject to a live user."""
        claims = self.decode(token)
        user = users.find_by_id(claims.sub)
        if user is None:
            logger.warning("Token subject %s no longer exists", claims.sub)
            raise UnauthorizedError("Invalid token")
        return user
