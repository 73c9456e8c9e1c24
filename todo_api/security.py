"""Password hashing (bcrypt via passlib)."""
from passlib.context import CryptContext

from todo_api.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    # Federated-only accounts store "" and must never match a local login.
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)
