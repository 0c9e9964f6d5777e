"""
Process-wide collaborators exposed as FastAPI dependencies.
Tests replace any of them with app.dependency_overrides.
"""
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Header

from social_login.authenticator import Principal, SessionAuthenticator
from social_login.config import (
    FACEBOOK_CLIENT_ID,
    FACEBOOK_ISSUER,
    FACEBOOK_REDIRECT_URL,
    HTTP_TIMEOUT_SECONDS,
    LOGIN_RESPONSE_MODE,
    LOGIN_SCOPE,
    PROVIDER_NAME,
    RATE_LIMIT_LOGIN_PER_MINUTE,
    SESSION_STORE_MAX_ENTRIES,
    SESSION_TTL_SECONDS,
    STATE_STORE_MAX_ENTRIES,
    STATE_TTL_SECONDS,
)
from social_login.database import SessionLocal
from social_login.flow_store import ExpiringStateStore
from social_login.login_flow import LoginFlowController
from social_login.oidc import IdentityProviderGateway, OIDCGateway
from social_login.rate_limit import RateLimiter
from social_login.session_store import SessionStore
from social_login.users import UserDirectory

_state_store = ExpiringStateStore(max_entries=STATE_STORE_MAX_ENTRIES)
_session_store = SessionStore(max_entries=SESSION_STORE_MAX_ENTRIES)
_user_directory = UserDirectory(SessionLocal)
_login_rate_limiter = RateLimiter(RATE_LIMIT_LOGIN_PER_MINUTE)

# Built on first use (app startup); discovery needs the network
_gateway: OIDCGateway | None = None


def get_state_store() -> ExpiringStateStore:
    return _state_store


def get_session_store() -> SessionStore:
    return _session_store


def get_user_directory() -> UserDirectory:
    return _user_directory


def get_login_rate_limiter() -> RateLimiter:
    return _login_rate_limiter


def get_gateway() -> IdentityProviderGateway:
    """Provider client; raises DiscoveryError if the provider metadata cannot be loaded."""
    global _gateway
    if _gateway is None:
        _gateway = OIDCGateway(
            issuer=FACEBOOK_ISSUER,
            client_id=FACEBOOK_CLIENT_ID,
            redirect_uri=FACEBOOK_REDIRECT_URL,
            timeout=HTTP_TIMEOUT_SECONDS,
        )
    return _gateway


def get_login_flow(
    state_store: Annotated[ExpiringStateStore, Depends(get_state_store)],
    gateway: Annotated[IdentityProviderGateway, Depends(get_gateway)],
    users: Annotated[UserDirectory, Depends(get_user_directory)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> LoginFlowController:
    return LoginFlowController(
        state_store=state_store,
        gateway=gateway,
        users=users,
        sessions=sessions,
        provider=PROVIDER_NAME,
        redirect_uri=FACEBOOK_REDIRECT_URL,
        scope=LOGIN_SCOPE,
        response_mode=LOGIN_RESPONSE_MODE,
        state_ttl=timedelta(seconds=STATE_TTL_SECONDS),
        session_ttl=timedelta(seconds=SESSION_TTL_SECONDS),
    )


def get_authenticator(
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> SessionAuthenticator:
    return SessionAuthenticator(sessions)


def require_session(
    authenticator: Annotated[SessionAuthenticator, Depends(get_authenticator)],
    authorization: Annotated[str | None, Header()] = None,
) -> Principal:
    """Dependency: valid session token in Authorization header -> Principal."""
    return authenticator.authenticate(authorization)
