"""Identity reconciliation — local password sign-in and federated (OAuth) sign-in.

Responsibilities:
- Local registration and login against bcrypt hashes
- Mapping a federated profile onto a new account, an existing account on the
  same provider, or an existing account that switches provider
- Minting the session token from the persisted user record
"""
import logging
from typing import Optional

from todo_api.exceptions import AuthenticationFailed, ConflictError, UnauthorizedError
from todo_api.models.user import AuthProvider, User
from todo_api.repositories.users import UserRepository
from todo_api.schemas.auth import AuthenticatedUser, FederatedProfile
from todo_api.security import get_password_hash, verify_password
from todo_api.services.token_service import TokenIssuer

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def _authenticated(user: User, tokens: TokenIssuer) -> AuthenticatedUser:
    """Build the sign-in result from the stored record, never from request input."""
    token = tokens.issue(user.id, user.email, user.name, user.profile_picture)
    return AuthenticatedUser(
        id=user.id,
        email=user.email,
        name=user.name or None,
        token=token,
        picture=user.profile_picture or None,
    )


def provider_mismatch_message(provider: AuthProvider) -> str:
    return (
        f"This account uses {provider.label} authentication. "
        f"Please sign in with {provider.label}."
    )


def register(
    users: UserRepository,
    tokens: TokenIssuer,
    email: str,
    name: str,
    password: str,
) -> AuthenticatedUser:
    """Create a local account. Email match is exact (case-sensitive)."""
    if users.find_by_email(email):
        logger.warning("Registration attempt with existing email: %s", email)
        raise ConflictError("Email already exists")

    user = users.create(
        email=email,
        password=get_password_hash(password),
        name=name,
        auth_provider=AuthProvider.local,
    )
    logger.info("User registered successfully: %s", user.id)
    return _authenticated(user, tokens)


def login(users: UserRepository, tokens: TokenIssuer, email: str, password: str) -> AuthenticatedUser:
    """Authenticate a local account."""
    user = users.find_by_email(email)
    if not user:
        logger.warning("Login attempt with non-existent email: %s", email)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if user.auth_provider != AuthProvider.local:
        logger.warning("Local login attempt for %s user: %s", user.auth_provider.value, user.id)
        raise UnauthorizedError(provider_mismatch_message(AuthProvider(user.auth_provider)))

    if not verify_password(password, user.password):
        logger.warning("Invalid password attempt for user: %s", user.id)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    logger.info("User logged in successfully: %s", user.id)
    return _authenticated(user, tokens)


def reconcile_federated_user(
    users: UserRepository,
    tokens: TokenIssuer,
    provider: AuthProvider,
    profile: FederatedProfile,
) -> AuthenticatedUser:
    """Sign in with a profile from an external identity provider.

    Decision table:
    1. No email in the profile -> AuthenticationFailed, nothing is stored.
    2. Unknown email -> new account on ``provider`` with the "" password
       sentinel, the profile's name and picture.
    3. Known email already on ``provider`` -> no change; the stored name and
       picture are used even if the profile differs.
    4. Known email on another provider (including local) -> provider and
       picture are overwritten (picture even when the profile has none);
       password and name are kept.
    """
    if provider == AuthProvider.local:
        raise ValueError("Federated sign-in requires an external provider")

    if not profile.email:
        logger.warning("%s profile did not include an email address", provider.label)
        raise AuthenticationFailed(f"No email address received from {provider.label}")

    picture: Optional[str] = profile.picture_url or None
    user = users.find_by_email(profile.email)

    if user is None:
        user = users.create(
            email=profile.email,
            password="",
            name=profile.display_name or None,
            auth_provider=provider,
            profile_picture=picture,
        )
        logger.info("New %s user created with ID: %s", provider.label, user.id)
    elif user.auth_provider != provider:
        previous = AuthProvider(user.auth_provider)
        user = users.update(user.id, auth_provider=provider, profile_picture=picture)
        logger.info(
            "Existing user %s switched from %s to %s auth", user.id, previous.value, provider.value
        )
    else:
        logger.debug("Returning %s user %s", provider.label, user.id)

    return _authenticated(user, tokens)
