"""
Pytest configuration for social_login. In-memory SQLite, no rate limiting, fake provider.
Env must be set before any social_login module is imported (config reads it at import).
"""
import os
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

os.environ["LOGIN_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOGIN_RATE_LIMIT_PER_MINUTE"] = "0"
os.environ["FACEBOOK_CLIENT_ID"] = "test-app"
os.environ["FACEBOOK_REDIRECT_URL"] = "https://127.0.0.1:8000/callback"

import pytest

from social_login.database import create_session_factory, init_db
from social_login.flow_store import ExpiringStateStore
from social_login.oidc import VerificationError
from social_login.session_store import SessionStore
from social_login.users import UserDirectory

AUTHORIZATION_ENDPOINT = "https://www.facebook.com/dialog/oauth/"


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeGateway:
    """
    Stands in for the provider. issue() mints an id_token bound to a nonce; verify() accepts only
    tokens it minted and only with the nonce they were minted for.
    """

    def __init__(self):
        self._claims: dict[str, dict] = {}
        self.verify_calls: list[tuple[str, dict, dict]] = []

    def build_authorization_url(self, *, scope: str, response_mode: str, state: str, nonce: str) -> str:
        params = {
            "client_id": "test-app",
            "response_type": "id_token",
            "scope": scope,
            "response_mode": response_mode,
            "state": state,
            "nonce": nonce,
        }
        return f"{AUTHORIZATION_ENDPOINT}?{urlencode(params)}"

    def issue(self, nonce: str, sub: str = "abc", email: str | None = "a@b.com") -> str:
        token = f"fake-id-token-{len(self._claims)}"
        claims = {"sub": sub, "nonce": nonce}
        if email is not None:
            claims["email"] = email
        self._claims[token] = claims
        return token

    def verify(self, redirect_uri: str, params: dict, checks: dict) -> dict:
        self.verify_calls.append((redirect_uri, params, checks))
        claims = self._claims.get(params.get("id_token"))
        if claims is None:
            raise VerificationError("malformed id_token")
        if claims["nonce"] != checks.get("nonce"):
            raise VerificationError("nonce mismatch")
        return dict(claims)


@pytest.fixture(scope="session", autouse=True)
def _app_tables():
    init_db()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def state_store(clock):
    return ExpiringStateStore(clock=clock)


@pytest.fixture
def session_store(clock):
    return SessionStore(clock=clock)


@pytest.fixture
def user_db():
    # Fresh in-memory DB per test
    return create_session_factory("sqlite:///:memory:")


@pytest.fixture
def user_directory(clock, user_db):
    return UserDirectory(user_db, clock=clock)
