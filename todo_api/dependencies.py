"""FastAPI dependencies: repositories, token issuer, OAuth service, current user."""
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from todo_api.config import settings
from todo_api.database import get_db
from todo_api.exceptions import UnauthorizedError
from todo_api.models.user import User
from todo_api.repositories.todos import SqlAlchemyTodoRepository, TodoRepository
from todo_api.repositories.users import SqlAlchemyUserRepository, UserRepository
from todo_api.services.oauth_service import OAuthService
from todo_api.services.token_service import TokenIssuer

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 like every other auth failure.
bearer_scheme = HTTPBearer(auto_error=False)

_token_issuer = TokenIssuer.from_settings(settings)
_oauth_service = OAuthService(settings)


def get_token_issuer() -> TokenIssuer:
    return _token_issuer


def get_oauth_service() -> OAuthService:
    return _oauth_service


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return SqlAlchemyUserRepository(db)


def get_todo_repository(db: Session = Depends(get_db)) -> TodoRepository:
    return SqlAlchemyTodoRepository(db)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> User:
    """Resolve the bearer token to a live user, or fail with 401."""
    if credentials is None:
        raise UnauthorizedError("Not authenticated")
    return tokens.verify(credentials.credentials, users)
