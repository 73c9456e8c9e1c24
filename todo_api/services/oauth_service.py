"""OAuth 2.0 authorization-code handshake with Google and Amazon.

Only this module talks to the providers. It turns a callback (``code`` and
``state``) into a normalized FederatedProfile; deciding what that profile
means for local accounts is auth_service's job.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
from jose import jwt
from jose.exceptions import JWTError
from pydantic import ValidationError

from todo_api.config import Settings
from todo_api.exceptions import AuthenticationFailed
from todo_api.models.user import AuthProvider
from todo_api.schemas.auth import FederatedProfile

logger = logging.getLogger(__name__)

OAUTH_PROVIDERS = {
    AuthProvider.google: {
        "auth_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://oauth2.googleapis.com/token",
        "userinfo_url": "https://www.googleapis.com/oauth2/v2/userinfo",
        "scope": "openid email profile",
    },
    AuthProvider.amazon: {
        "auth_url": "https://www.amazon.com/ap/oa",
        "token_url": "https://api.amazon.com/auth/o2/token",
        "userinfo_url": "https://api.amazon.com/user/profile",
        "scope": "profile",
    },
}


def normalize_profile(provider: AuthProvider, userinfo: dict[str, Any]) -> FederatedProfile:
    """Map a provider's userinfo document onto FederatedProfile."""
    if provider == AuthProvider.google:
        full_name = f"{userinfo.get('given_name') or ''} {userinfo.get('family_name') or ''}".strip()
        return FederatedProfile(
            email=userinfo.get("email") or None,
            display_name=full_name or userinfo.get("name") or None,
            picture_url=userinfo.get("picture") or None,
        )
    if provider == AuthProvider.amazon:
        # Amazon's profile scope has no picture.
        return FederatedProfile(
            email=userinfo.get("email") or None,
            display_name=userinfo.get("name") or None,
            picture_url=None,
        )
    raise ValueError(f"Unsupported OAuth provider: {provider}")


class OAuthService:
    """Builds consent URLs and completes the code exchange.

    ``state`` is a short-lived JWT signed with the app secret, so no
    server-side storage is needed between the redirect and the callback.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _credentials(self, provider: AuthProvider) -> tuple[str, str, str]:
        if provider == AuthProvider.google:
            return (
                self.settings.GOOGLE_CLIENT_ID,
                self.settings.GOOGLE_CLIENT_SECRET,
                self.settings.GOOGLE_CALLBACK_URL,
            )
        if provider == AuthProvider.amazon:
            return (
                self.settings.AMAZON_CLIENT_ID,
                self.settings.AMAZON_CLIENT_SECRET,
                self.settings.AMAZON_CALLBACK_URL,
            )
        raise ValueError(f"Unsupported OAuth provider: {provider}")

    def is_configured(self, provider: AuthProvider) -> bool:
        client_id, client_secret, callback_url = self._credentials(provider)
        return bool(client_id and client_secret and callback_url)

    def _new_state(self, provider: AuthProvider) -> str:
        expires_at = datetime.now(timezone.utc) + timedelta(
            minutes=self.settings.OAUTH_STATE_EXPIRE_MINUTES
        )
        payload = {
            "provider": provider.value,
            "nonce": uuid.uuid4().hex,
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self.settings.JWT_SECRET, algorithm=self.settings.JWT_ALGORITHM)

    def _check_state(self, provider: AuthProvider, state: Optional[str]) -> None:
        if not state:
            raise AuthenticationFailed("Missing OAuth state")
        try:
            payload = jwt.decode(
                state, self.settings.JWT_SECRET, algorithms=[self.settings.JWT_ALGORITHM]
            )
        except JWTError as exc:
            raise AuthenticationFailed(f"Invalid OAuth state: {exc}")
        if payload.get("provider") != provider.value:
            raise AuthenticationFailed("OAuth state was issued for another provider")

    def authorization_url(self, provider: AuthProvider) -> str:
        client_id, _, callback_url = self._credentials(provider)
        config = OAUTH_PROVIDERS[provider]
        params = {
            "client_id": client_id,
            "redirect_uri": callback_url,
            "response_type": "code",
            "scope": config["scope"],
            "state": self._new_state(provider),
        }
        return f"{config['auth_url']}?{urlencode(params)}"

    def fetch_profile(self, provider: AuthProvider, code: Optional[str], state: Optional[str]) -> FederatedProfile:
        """Validate the callback, exchange the code and fetch the user's profile."""
        self._check_state(provider, state)
        if not code:
            raise AuthenticationFailed("Missing authorization code")

        client_id, client_secret, callback_url = self._credentials(provider)
        config = OAUTH_PROVIDERS[provider]

        try:
            with httpx.Client(
                timeout=self.settings.OAUTH_HTTP_TIMEOUT,
                follow_redirects=False,
                transport=self._transport,
            ) as client:
                token_response = client.post(
                    config["token_url"],
                    data={
                        "client_id": client_id,
                        "client_secret": client_secret,
                        "code": code,
                        "redirect_uri": callback_url,
                        "grant_type": "authorization_code",
                    },
                    headers={"Accept": "application/json"},
                )
                token_response.raise_for_status()
                token_data = token_response.json()
                access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
                if not access_token:
                    raise AuthenticationFailed(f"{provider.label} did not return an access token")

                userinfo_response = client.get(
                    config["userinfo_url"],
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                userinfo_response.raise_for_status()
                userinfo = userinfo_response.json()
        except httpx.HTTPStatusError as exc:
            raise AuthenticationFailed(
                f"{provider.label} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AuthenticationFailed(f"{provider.label} request failed: {exc}") from exc
        except ValueError as exc:
            raise AuthenticationFailed(f"{provider.label} returned malformed JSON") from exc

        if not isinstance(userinfo, dict):
            raise AuthenticationFailed(f"{provider.label} returned an unexpected profile format")

        try:
            profile = normalize_profile(provider, userinfo)
        except ValidationError as exc:
            raise AuthenticationFailed(f"{provider.label} returned an invalid profile") from exc

        logger.debug("Fetched %s profile", provider.label)
        return profile
