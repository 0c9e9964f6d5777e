"""
Audit logging for login events. Never records tokens, nonces or id_tokens.
GET /audit lists recent events (read-only; do not expose publicly in production).
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from social_login.database import SessionLocal, get_db
from social_login.models import AuditLog

EVENT_LOGIN_STARTED = "login_started"
EVENT_LOGIN_OK = "login_ok"
EVENT_LOGIN_FAIL = "login_fail"

OUTCOME_SUCCESS = "success"
OUTCOME_FAIL = "fail"

MAX_AUDIT_ROWS = 500


def get_client_ip(request: Request | None) -> str | None:
    if request is None or request.client is None:
        return None
    return getattr(request.client, "host", None)


def log_audit(
    event_type: str,
    *,
    user_id: str | None = None,
    ip: str | None = None,
    outcome: str = OUTCOME_SUCCESS,
    reason: str | None = None,
    session_factory: sessionmaker = SessionLocal,
) -> None:
    """Append one audit record."""
    with session_factory() as db:
        db.add(AuditLog(event_type=event_type, user_id=user_id, ip=ip, outcome=outcome, reason=reason))
        db.commit()


router = APIRouter(tags=["audit"])


@router.get("/audit")
def list_audit_logs(
    limit: int = 100,
    event_type: str | None = None,
    outcome: str | None = None,
    db: Session = Depends(get_db),
):
    """Recent audit events, most recent first."""
    q = db.query(AuditLog).order_by(AuditLog.id.desc())
    if event_type:
        q = q.filter(AuditLog.event_type == event_type)
    if outcome:
        q = q.filter(AuditLog.outcome == outcome)
    rows = q.limit(min(max(1, limit), MAX_AUDIT_ROWS)).all()
    return [
        {
            "created_at": r.created_at.isoformat() if r.created_at else None,
            "event_type": r.event_type,
            "user_id": r.user_id,
            "ip": r.ip,
            "outcome": r.outcome,
            "reason": r.reason,
        }
        for r in rows
    ]
