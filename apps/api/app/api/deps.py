from fastapi import Depends
from sqlalchemy.orm import Session

from apps.api.app.db.session import get_db
from apps.api.app.services.guard_engine import GuardEngine
from apps.api.app.services.guard_store import GuardStore


def get_guard_engine(db: Session = Depends(get_db)) -> GuardEngine:
    """
    One engine per request, bound to the request's session.
    """
    return GuardEngine(GuardStore(db))
