import logging
import threading
import zlib
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from apps.api.app.models.guard_event import GuardEvent
from apps.api.app.models.guard_settings import (
    DEFAULT_MAX_LOSS_STREAK,
    DEFAULT_MAX_LOSSES_PER_DAY,
    DEFAULT_MAX_TRADES_PER_DAY,
    DEFAULT_TIMEZONE_OFFSET_MIN,
    GuardSettings,
)
from apps.api.app.models.guard_state import GuardState
from apps.api.app.models.user import User
from apps.api.app.services.audit import log_guard_event
from apps.api.app.services.errors import PersistenceError, UnknownUserError

logger = logging.getLogger("guard_store")

LOCK_STRIPES = 64
_user_locks = [threading.RLock() for _ in range(LOCK_STRIPES)]


def user_lock(user_id: str) -> threading.RLock:
    # fixed pool; unrelated users may share a stripe
    return _user_locks[zlib.crc32(user_id.encode("utf-8")) % LOCK_STRIPES]


# Partial updates: each one lists exactly the state fields it may change.


@dataclass(frozen=True)
class DayRollover:
    day_key: str
    clear_stop: bool

    def apply(self, row: GuardState):
        row.day_key = self.day_key
        row.trades_today = 0
        row.losses_today = 0
        row.loss_streak = 0
        if self.clear_stop:
            row.trading_off_until_ts = 0
            row.off_reason = ""


@dataclass(frozen=True)
class StopCleared:
    def apply(self, row: GuardState):
        row.trading_off_until_ts = 0
        row.off_reason = ""


@dataclass(frozen=True)
class StopSet:
    until_ts: int
    reason: str

    def apply(self, row: GuardState):
        row.trading_off_until_ts = self.until_ts
        row.off_reason = self.reason


@dataclass(frozen=True)
class OutcomeApplied:
    trades_today: int
    losses_today: int
    loss_streak: int

    def apply(self, row: GuardState):
        row.trades_today = self.trades_today
        row.losses_today = self.losses_today
        row.loss_streak = self.loss_streak


@dataclass(frozen=True)
class SettingsValues:
    max_trades_per_day: int = DEFAULT_MAX_TRADES_PER_DAY
    max_losses_per_day: int = DEFAULT_MAX_LOSSES_PER_DAY
    max_loss_streak: int = DEFAULT_MAX_LOSS_STREAK
    timezone_offset_min: int = DEFAULT_TIMEZONE_OFFSET_MIN


class GuardStore:
    """Settings, state and event persistence for the guard engine.

    Every engine operation runs inside ``transaction(user_id)``, which holds
    the user's lock and commits or rolls back the whole unit of work.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self, user_id: str):
        with user_lock(user_id):
            try:
                yield self
                self.db.commit()
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception("Storage failure for user %s", user_id)
                raise PersistenceError(str(exc)) from exc
            except BaseException:
                self.db.rollback()
                raise

    def ensure_user(self, user_id: str, now: int) -> bool:
        """Create the user rows if absent. Returns True when created."""
        user = self.db.get(User, user_id, populate_existing=True)
        if user is not None:
            user.updated_at = now
            self.db.flush()
            return False

        self.db.add(User(tg_user_id=user_id, created_at=now, updated_at=now))
        self.db.flush()

        defaults = SettingsValues()
        self.db.add(
            GuardSettings(
                tg_user_id=user_id,
                max_trades_per_day=defaults.max_trades_per_day,
                max_losses_per_day=defaults.max_losses_per_day,
                max_loss_streak=defaults.max_loss_streak,
                timezone_offset_min=defaults.timezone_offset_min,
                updated_at=now,
            )
        )
        self.db.add(
            GuardState(
                tg_user_id=user_id,
                day_key="",
                trades_today=0,
                losses_today=0,
                loss_streak=0,
                trading_off_until_ts=0,
                off_reason="",
                updated_at=now,
            )
        )
        self.db.flush()
        logger.info("Created guard rows for user %s", user_id)
        return True

    def get_settings(self, user_id: str) -> GuardSettings:
        row = self.db.get(GuardSettings, user_id, populate_existing=True)
        if row is None:
            raise UnknownUserError(user_id)
        return row

    def get_state(self, user_id: str, for_update: bool = False) -> GuardState:
        # populate_existing: rows cached from an earlier transaction may be stale
        stmt = (
            select(GuardState)
            .where(GuardState.tg_user_id == user_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        row = self.db.execute(stmt).scalar_one_or_none()
        if row is None:
            raise UnknownUserError(user_id)
        return row

    def apply_state(self, user_id: str, change, now: int) -> GuardState:
        row = self.get_state(user_id, for_update=True)
        change.apply(row)
        row.updated_at = now
        self.db.flush()
        return row

    def write_settings(self, user_id: str, values: SettingsValues, now: int) -> GuardSettings:
        row = self.get_settings(user_id)
        row.max_trades_per_day = values.max_trades_per_day
        row.max_losses_per_day = values.max_losses_per_day
        row.max_loss_streak = values.max_loss_streak
        row.timezone_offset_min = values.timezone_offset_min
        row.updated_at = now
        self.db.flush()
        return row

    def add_event(self, user_id: str, event_type: str, detail: str, now: int) -> GuardEvent:
        return log_guard_event(
            self.db,
            user_id=user_id,
            event_type=event_type,
            detail=detail,
            ts=now,
        )

    def list_events(self, user_id: str, limit: Optional[int] = None) -> list[GuardEvent]:
        stmt = (
            select(GuardEvent)
            .where(GuardEvent.tg_user_id == user_id)
            .order_by(GuardEvent.ts.desc(), GuardEvent.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())
