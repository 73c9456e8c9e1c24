"""User ORM model."""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, Enum as SAEnum
from sqlalchemy.orm import relationship

from todo_api.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthProvider(str, enum.Enum):
    local = "local"
    google = "google"
    amazon = "amazon"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False, default="")  # "" for federated-only accounts
    name = Column(String(255), nullable=True)
    auth_provider = Column(SAEnum(AuthProvider), nullable=False, default=AuthProvider.local)
    profile_picture = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    todos = relationship(
        "Todo",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
