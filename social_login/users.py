"""
User directory: reconciles provider identities into local user records.

upsert is create-if-absent keyed by "<provider>-<subject>". The first write fixes email and
created_at; later logins return the stored record unchanged.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from social_login.clock import Clock, SystemClock
from social_login.models import User

logger = logging.getLogger(__name__)


def make_user_id(provider: str, subject: str) -> str:
    return f"{provider}-{subject}"


@dataclass(frozen=True)
class UserRecord:
    id: str
    email: str | None
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "created_at": self.created_at.isoformat(),
        }


def _to_record(user: User) -> UserRecord:
    created_at = user.created_at
    # SQLite drops tzinfo on the way back
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return UserRecord(id=user.id, email=user.email, created_at=created_at)


class UserDirectory:
    def __init__(self, session_factory: sessionmaker, clock: Clock | None = None):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()

    def upsert(self, user_id: str, email: str | None) -> UserRecord:
        """Return the existing record for user_id, or create it with email and created_at=now."""
        with self._lock, self._session_factory() as db:
            user = db.get(User, user_id)
            if user is not None:
                return _to_record(user)
            db.add(User(id=user_id, email=email, created_at=self._clock.now()))
            try:
                db.commit()
                logger.info("Created user %s", user_id)
            except IntegrityError:
                # Another process sharing the database inserted it first
                db.rollback()
                logger.debug("User %s created concurrently; using stored record", user_id)
            return _to_record(db.get(User, user_id))

    def get(self, user_id: str) -> UserRecord | None:
        with self._lock, self._session_factory() as db:
            user = db.get(User, user_id)
            return _to_record(user) if user is not None else None

