"""
Bearer session check for protected endpoints. Accepts "Bearer <token>" or the bare token.
"""
from dataclasses import dataclass
from datetime import datetime

from social_login.errors import EntryExpired, EntryNotFound, SessionExpired, Unauthorized
from social_login.session_store import SessionStore

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Principal:
    user_id: str
    expires_at: datetime


def extract_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    if authorization.startswith(BEARER_PREFIX):
        authorization = authorization[len(BEARER_PREFIX):]
    return authorization or None


class SessionAuthenticator:
    def __init__(self, sessions: SessionStore):
        self.sessions = sessions

    def authenticate(self, authorization: str | None) -> Principal:
        """Raises Unauthorized (missing/unknown token) or SessionExpired."""
        token = extract_token(authorization)
        if token is None:
            raise Unauthorized()
        try:
            session = self.sessions.get(token)
        except EntryNotFound:
            raise Unauthorized()
        except EntryExpired:
            raise SessionExpired()
        return Principal(user_id=session.user_id, expires_at=session.expires_at)
