from typing import Optional

from fastapi import APIRouter, Depends

from apps.api.app.api.deps import get_guard_engine
from apps.api.app.schemas.guard import (
    BootstrapIn,
    EventOut,
    EventsOut,
    RecordIn,
    SettingsIn,
    SnapshotOut,
)
from apps.api.app.services.guard_engine import GuardEngine, Snapshot


router = APIRouter(prefix="/api", tags=["guard"])


@router.post("/bootstrap", response_model=SnapshotOut)
def bootstrap(
    payload: BootstrapIn,
    engine: GuardEngine = Depends(get_guard_engine),
):
    return SnapshotOut.model_validate(engine.bootstrap(payload.tg_user_id))


@router.post("/settings", response_model=SnapshotOut)
def update_settings(
    payload: SettingsIn,
    engine: GuardEngine = Depends(get_guard_engine),
):
    settings = engine.update_settings(payload.tg_user_id, payload.candidate())
    state = engine.get_state(payload.tg_user_id)
    return SnapshotOut.model_validate(Snapshot(settings=settings, state=state))


@router.post("/record", response_model=SnapshotOut)
def record(
    payload: RecordIn,
    engine: GuardEngine = Depends(get_guard_engine),
):
    # TradingOffError -> 403 in the app's exception handlers
    state = engine.record_outcome(payload.tg_user_id, payload.outcome)
    settings = engine.get_settings(payload.tg_user_id)
    return SnapshotOut.model_validate(Snapshot(settings=settings, state=state))


@router.get("/events", response_model=EventsOut)
def list_events(
    tgUserId: Optional[str] = None,
    limit: Optional[int] = None,
    engine: GuardEngine = Depends(get_guard_engine),
):
    rows = engine.list_events(tgUserId, limit)
    return EventsOut(events=[EventOut.model_validate(r) for r in rows])
