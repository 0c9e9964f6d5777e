"""
Two-phase login handshake with the identity provider.

begin_login persists a state -> nonce pending login and returns the provider authorization URL.
complete_login consumes that pending login, verifies the id_token against its nonce, reconciles
the user and issues an opaque session token. A state is single-use: every completion attempt
that reaches the state check consumes it, so a failed attempt must restart with begin_login.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from social_login import generators
from social_login.errors import (
    EntryExpired,
    EntryNotFound,
    InvalidState,
    InvalidToken,
    MissingToken,
    StateExpired,
)
from social_login.flow_store import ExpiringStateStore
from social_login.oidc import IdentityProviderGateway, VerificationError
from social_login.session_store import SessionStore
from social_login.users import UserDirectory, make_user_id

logger = logging.getLogger(__name__)

TOKEN_TYPE = "bearer"


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_at: datetime
    user_id: str
    token_type: str = TOKEN_TYPE

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "expires_at": int(self.expires_at.timestamp()),
            "token_type": self.token_type,
        }


class LoginFlowController:
    def __init__(
        self,
        *,
        state_store: ExpiringStateStore,
        gateway: IdentityProviderGateway,
        users: UserDirectory,
        sessions: SessionStore,
        provider: str,
        redirect_uri: str,
        scope: str = "openid",
        response_mode: str = "fragment",
        state_ttl: timedelta = timedelta(minutes=15),
        session_ttl: timedelta = timedelta(hours=24),
    ):
        self.state_store = state_store
        self.gateway = gateway
        self.users = users
        self.sessions = sessions
        self.provider = provider
        self.redirect_uri = redirect_uri
        self.scope = scope
        self.response_mode = response_mode
        self.state_ttl = state_ttl
        self.session_ttl = session_ttl

    def begin_login(self) -> str:
        """Create a pending login and return the provider authorization URL to redirect to."""
        state = generators.generate_state()
        nonce = generators.generate_nonce()
        self.state_store.put(state, nonce, self.state_ttl)
        return self.gateway.build_authorization_url(
            scope=self.scope,
            response_mode=self.response_mode,
            state=state,
            nonce=nonce,
        )

    def complete_login(self, state: str | None, id_token: str | None) -> IssuedToken:
        if not id_token:
            raise MissingToken()
        if not state:
            raise InvalidState()

        try:
            nonce = self.state_store.take_if_valid(state)
        except EntryNotFound:
            raise InvalidState()
        except EntryExpired:
            raise StateExpired()

        # No store lock is held during the provider round-trip
        try:
            claims = self.gateway.verify(self.redirect_uri, {"id_token": id_token}, {"nonce": nonce})
        except VerificationError as e:
            logger.warning("id_token rejected: %s", e)
            raise InvalidToken(f"invalid id_token: {e}")

        subject = claims.get("sub")
        if not subject:
            raise InvalidToken("invalid id_token: sub claim missing")

        user = self.users.upsert(make_user_id(self.provider, str(subject)), claims.get("email"))
        session = self.sessions.put(generators.generate_session_token(), user.id, self.session_ttl)
        logger.info("Login completed for %s", user.id)
        return IssuedToken(access_token=session.token, expires_at=session.expires_at, user_id=user.id)
