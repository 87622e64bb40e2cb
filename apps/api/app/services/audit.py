from sqlalchemy.orm import Session

from apps.api.app.models.guard_event import GuardEvent


def log_guard_event(
    db: Session,
    *,
    user_id: str,
    event_type: str,
    detail: str,
    ts: int,
):
    event = GuardEvent(
        tg_user_id=user_id,
        ts=ts,
        type=event_type,
        detail=detail,
    )
    db.add(event)
    db.flush()
    return event
