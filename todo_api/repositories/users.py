"""User persistence: a storage-agnostic interface and its SQLAlchemy implementation."""
import logging
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from todo_api.models.user import AuthProvider, User

logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    def find_by_id(self, user_id: int) -> Optional[User]: ...

    def find_by_email(self, email: str) -> Optional[User]: ...

    def create(
        self,
        email: str,
        password: str,
        name: Optional[str],
        auth_provider: AuthProvider,
        profile_picture: Optional[str] = None,
    ) -> User: ...

    def update(self, user_id: int, **fields) -> User: ...


class SqlAlchemyUserRepository:
    """UserRepository backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def find_by_email(self, email: str) -> Optional[User]:
        logger.debug("Finding user by email %s", email)
        return self.db.query(User).filter(User.email == email).first()

    def create(
        self,
        email: str,
        password: str,
        name: Optional[str],
        auth_provider: AuthProvider,
        profile_picture: Optional[str] = None,
    ) -> User:
        user = User(
            email=email,
            password=password,
            name=name,
            auth_provider=auth_provider,
            profile_picture=profile_picture,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.debug("Created %s user %s", auth_provider.value, user.id)
        return user

    def update(self, user_id: int, **fields) -> User:
        user = self.db.query(User).filter(User.id == user_id).one()
        for field, value in fields.items():
            setattr(user, field, value)
        self.db.commit()
        self.db.refresh(user)
        logger.debug("Updated user %s fields %s", user_id, sorted(fields))
        return user
