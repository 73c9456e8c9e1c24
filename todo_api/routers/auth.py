"""Authentication API routes — local credentials and Google/Amazon OAuth."""
import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from todo_api.config import settings
from todo_api.dependencies import (
    get_current_user,
    get_oauth_service,
    get_token_issuer,
    get_user_repository,
)
from todo_api.models.user import AuthProvider, User
from todo_api.repositories.users import UserRepository
from todo_api.schemas.auth import AuthenticatedUser, LoginRequest, RegisterRequest, UserOut
from todo_api.services import auth_service
from todo_api.services.oauth_service import OAuthService
from todo_api.services.token_service import TokenIssuer

logger = logging.getLogger(__name__)
router = APIRouter()

# Query string appended to the frontend login page when a callback fails.
CALLBACK_ERROR_PARAMS = {
    AuthProvider.google: {"auth_error": "true"},
    AuthProvider.amazon: {"auth_error": "true", "provider": "amazon"},
}


@router.post("/register", response_model=AuthenticatedUser, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    """Register a local account and return a session token."""
    logger.debug("Registration attempt for email: %s", payload.email)
    return auth_service.register(users, tokens, payload.email, payload.name, payload.password)


@router.post("/login", response_model=AuthenticatedUser)
def login(
    payload: LoginRequest,
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    """Log in with email and password."""
    logger.debug("Login attempt for email: %s", payload.email)
    return auth_service.login(users, tokens, payload.email, payload.password)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user


def _start_oauth(provider: AuthProvider, oauth: OAuthService) -> RedirectResponse:
    if not oauth.is_configured(provider):
        logger.error("%s sign-in requested but no client credentials are configured", provider.label)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{provider.label} sign-in is not configured",
        )
    logger.debug("%s authentication initiated", provider.label)
    return RedirectResponse(oauth.authorization_url(provider), status_code=status.HTTP_302_FOUND)


def _finish_oauth(
    provider: AuthProvider,
    code: Optional[str],
    state: Optional[str],
    error: Optional[str],
    oauth: OAuthService,
    users: UserRepository,
    tokens: TokenIssuer,
) -> RedirectResponse:
    """Complete the handshake and redirect to the frontend.

    Failures never reach the browser as errors: they are logged and turned
    into a redirect to the frontend login page.
    """
    try:
        if error:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"{provider.label} returned error: {error}",
            )
        profile = oauth.fetch_profile(provider, code, state)
        result = auth_service.reconcile_federated_user(users, tokens, provider, profile)
    except (HTTPException, SQLAlchemyError) as exc:
        detail = exc.detail if isinstance(exc, HTTPException) else str(exc)
        logger.error("%s auth callback error: %s", provider.label, detail)
        query = urlencode(CALLBACK_ERROR_PARAMS[provider])
        return RedirectResponse(
            f"{settings.FRONTEND_URL}/login?{query}", status_code=status.HTTP_302_FOUND
        )

    logger.info("%s sign-in completed for user %s", provider.label, result.id)
    return RedirectResponse(
        f"{settings.FRONTEND_URL}/auth/callback?{urlencode({'token': result.token})}",
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/google")
def google_auth(oauth: OAuthService = Depends(get_oauth_service)):
    """Redirect to Google's consent page."""
    return _start_oauth(AuthProvider.google, oauth)


@router.get("/google/callback")
def google_auth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    oauth: OAuthService = Depends(get_oauth_service),
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    """Handle Google's redirect back; sends the browser on to the frontend."""
    return _finish_oauth(AuthProvider.google, code, state, error, oauth, users, tokens)


@router.get("/amazon")
def amazon_auth(oauth: OAuthService = Depends(get_oauth_service)):
    """Redirect to Amazon's consent page."""
    return _start_oauth(AuthProvider.amazon, oauth)


@router.get("/amazon/callback")
def amazon_auth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    oauth: OAuthService = Depends(get_oauth_service),
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    """Handle Amazon's redirect back; sends the browser on to the frontend."""
    return _finish_oauth(AuthProvider.amazon, code, state, error, oauth, users, tokens)
