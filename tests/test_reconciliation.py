"""Federated sign-in decision table (service level, no HTTP).

Covers new accounts, repeat sign-ins on the same provider, and provider
switches, including the picture handling that differs between them.
"""
import pytest

from todo_api.exceptions import AuthenticationFailed
from todo_api.models.user import AuthProvider, User
from todo_api.schemas.auth import FederatedProfile
from todo_api.security import get_password_hash, verify_password
from todo_api.services.auth_service import reconcile_federated_user


def _profile(email="fed@x.com", name="Fed User", picture="https://img/fed.png"):
    return FederatedProfile(email=email, display_name=name, picture_url=picture)


class TestNewAccount:

    @pytest.mark.parametrize("provider", [AuthProvider.google, AuthProvider.amazon])
    def test_creates_exactly_one_user_on_provider(self, db, users, tokens, provider):
        result = reconcile_federated_user(users, tokens, provider, _profile())

        rows = db.query(User).filter(User.email == "fed@x.com").all()
        assert len(rows) == 1
        assert rows[0].auth_provider == provider
        assert rows[0].password == ""
        assert rows[0].name == "Fed User"
        assert result.id == rows[0].id
        assert result.picture == "https://img/fed.png"
        assert tokens.decode(result.token).sub == rows[0].id

    def test_missing_picture_is_null(self, users, tokens):
        result = reconcile_federated_user(users, tokens, AuthProvider.amazon, _profile(picture=None))
        assert result.picture is None

    def test_sentinel_password_never_matches(self, users, tokens):
        reconcile_federated_user(users, tokens, AuthProvider.google, _profile())
        user = users.find_by_email("fed@x.com")
        assert verify_password("", user.password) is False

    @pytest.mark.parametrize("email", [None, ""])
    def test_missing_email_fails_without_creating(self, db, users, tokens, email):
        with pytest.raises(AuthenticationFailed):
            reconcile_federated_user(users, tokens, AuthProvider.google, _profile(email=email))
        assert db.query(User).count() == 0

    def test_local_is_not_a_federated_provider(self, users, tokens):
        with pytest.raises(ValueError):
            reconcile_federated_user(users, tokens, AuthProvider.local, _profile())


class TestSameProvider:

    def test_stored_name_and_picture_win(self, users, tokens):
        first = reconcile_federated_user(
            users, tokens, AuthProvider.google, _profile(name="Original", picture="https://img/1.png"),
        )
        second = reconcile_federated_user(
            users, tokens, AuthProvider.google, _profile(name="Renamed", picture="https://img/2.png"),
        )

        user = users.find_by_email("fed@x.com")
        assert user.name == "Original"
        assert user.profile_picture == "https://img/1.png"
        assert second.id == first.id
        assert second.name == "Original"
        assert second.picture == "https://img/1.png"
        claims = tokens.decode(second.token)
        assert claims.name == "Original"
        assert claims.picture == "https://img/1.png"


class TestProviderSwitch:

    def test_local_account_switches_to_google(self, users, tokens):
        hashed = get_password_hash("pw123456")
        local = users.create(
            email="fed@x.com", password=hashed, name="Local Name", auth_provider=AuthProvider.local,
        )

        result = reconcile_federated_user(
            users, tokens, AuthProvider.google, _profile(name="Google Name", picture="https://img/g.png"),
        )

        user = users.find_by_email("fed@x.com")
        assert user.id == local.id
        assert user.auth_provider == AuthProvider.google
        assert user.profile_picture == "https://img/g.png"
        assert user.password == hashed
        assert user.name == "Local Name"
        assert result.name == "Local Name"
        assert result.picture == "https://img/g.png"

    def test_switch_overwrites_picture_with_null(self, users, tokens):
        reconcile_federated_user(
            users, tokens, AuthProvider.google, _profile(picture="https://img/g.png"),
        )

        result = reconcile_federated_user(
            users, tokens, AuthProvider.amazon, _profile(picture=None),
        )

        user = users.find_by_email("fed@x.com")
        assert user.auth_provider == AuthProvider.amazon
        assert user.profile_picture is None
        assert result.picture is None
        assert tokens.decode(result.token).picture is None

    def test_provider_tag_follows_most_recent_provider(self, users, tokens):
        reconcile_federated_user(users, tokens, AuthProvider.google, _profile())
        reconcile_federated_user(users, tokens, AuthProvider.amazon, _profile())
        reconcile_federated_user(users, tokens, AuthProvider.google, _profile())
        assert users.find_by_email("fed@x.com").auth_provider == AuthProvider.google
