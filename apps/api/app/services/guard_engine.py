import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from apps.api.app.core.config import settings as app_settings
from apps.api.app.core.time import day_key, now_ts, start_of_next_local_day
from apps.api.app.models.guard_event import EventType, GuardEvent
from apps.api.app.models.guard_settings import GuardSettings
from apps.api.app.models.guard_state import GuardState
from apps.api.app.services.errors import GuardValidationError, TradingOffError
from apps.api.app.services.guard_store import (
    DayRollover,
    GuardStore,
    OutcomeApplied,
    SettingsValues,
    StopCleared,
    StopSet,
)

logger = logging.getLogger("guard_engine")

OUTCOME_WIN = "WIN"
OUTCOME_LOSS = "LOSS"
OUTCOMES = (OUTCOME_WIN, OUTCOME_LOSS)

REASON_MAX_TRADES = "Max trades per day reached"
REASON_MAX_LOSSES = "Max losses per day reached"
REASON_MAX_STREAK = "Max loss streak reached"

# (field, default, min, max)
SETTINGS_BOUNDS = {
    "max_trades_per_day": (6, 1, 50),
    "max_losses_per_day": (3, 0, 50),
    "max_loss_streak": (2, 1, 50),
    "timezone_offset_min": (60, -720, 840),
}

# Request field names accepted alongside the column names.
SETTINGS_ALIASES = {
    "maxTradesPerDay": "max_trades_per_day",
    "maxLossesPerDay": "max_losses_per_day",
    "maxLossStreak": "max_loss_streak",
    "timezoneOffsetMin": "timezone_offset_min",
    "timezoneOffsetMinutes": "timezone_offset_min",
}

MAX_EVENTS = 50


@dataclass(frozen=True)
class Snapshot:
    settings: GuardSettings
    state: GuardState


def normalize_user_id(user_id: Any) -> str:
    if user_id is None or isinstance(user_id, bool):
        raise GuardValidationError("tgUserId required")
    value = str(user_id).strip()
    if not value:
        raise GuardValidationError("tgUserId required")
    return value


def parse_outcome(outcome: Any) -> str:
    # exact match only, no case folding or trimming
    if not isinstance(outcome, str) or outcome not in OUTCOMES:
        raise GuardValidationError("outcome must be WIN or LOSS")
    return outcome


def clamp_setting(value: Any, default: int, lo: int, hi: int) -> int:
    if value is None or value == "":
        number = default
    else:
        try:
            number = int(float(value))
        except (TypeError, ValueError, OverflowError):
            number = default
    return max(lo, min(hi, number))


def clamp_settings(candidate: Optional[Mapping[str, Any]]) -> SettingsValues:
    """Clamp every threshold independently; never rejects."""
    raw = {}
    for key, value in (candidate or {}).items():
        raw[SETTINGS_ALIASES.get(key, key)] = value
    values = {
        field: clamp_setting(raw.get(field), default, lo, hi)
        for field, (default, lo, hi) in SETTINGS_BOUNDS.items()
    }
    return SettingsValues(**values)


def is_trading_off(state: GuardState, now: int) -> bool:
    return int(state.trading_off_until_ts or 0) > now


def limit_breach_reason(settings: GuardSettings, state: GuardState) -> str:
    # First match wins; order is trades, losses, streak.
    if state.trades_today >= settings.max_trades_per_day:
        return REASON_MAX_TRADES
    if state.losses_today >= settings.max_losses_per_day:
        return REASON_MAX_LOSSES
    if state.loss_streak >= settings.max_loss_streak:
        return REASON_MAX_STREAK
    return ""


class GuardEngine:
    """Per-user daily trade budget: day rollover, stop expiry and limits.

    All time-dependent work happens lazily when an operation is called;
    ``clock`` returns the current epoch second and is read once per operation.
    """

    def __init__(self, store: GuardStore, clock: Callable[[], int] = now_ts):
        self.store = store
        self.clock = clock

    # reads

    def ensure_user(self, user_id) -> None:
        user_id = normalize_user_id(user_id)
        with self.store.transaction(user_id):
            self.store.ensure_user(user_id, self.clock())

    def get_settings(self, user_id) -> GuardSettings:
        user_id = normalize_user_id(user_id)
        with self.store.transaction(user_id):
            return self.store.get_settings(user_id)

    def get_state(self, user_id) -> GuardState:
        user_id = normalize_user_id(user_id)
        with self.store.transaction(user_id):
            return self.store.get_state(user_id)

    def snapshot(self, user_id) -> Snapshot:
        user_id = normalize_user_id(user_id)
        with self.store.transaction(user_id):
            return Snapshot(
                settings=self.store.get_settings(user_id),
                state=self.store.get_state(user_id),
            )

    def is_trading_off(self, state: GuardState, now: Optional[int] = None) -> bool:
        return is_trading_off(state, self.clock() if now is None else now)

    # state machine

    def reconcile(self, user_id) -> GuardState:
        user_id = normalize_user_id(user_id)
        with self.store.transaction(user_id):
            return self._reconcile(user_id, self.clock())

    def enforce_limits(self, user_id) -> GuardState:
        user_id = normalize_user_id(user_id)
        with self.store.transaction(user_id):
            return self._enforce_limits(user_id, self.clock())

    def bootstrap(self, user_id) -> Snapshot:
        user_id = normalize_user_id(user_id)
        now = self.clock()
        with self.store.transaction(user_id):
            self.store.ensure_user(user_id, now)
            self._reconcile(user_id, now)
            state = self._enforce_limits(user_id, now)
            return Snapshot(settings=self.store.get_settings(user_id), state=state)

    def record_outcome(self, user_id, outcome) -> GuardState:
        user_id = normalize_user_id(user_id)
        outcome = parse_outcome(outcome)
        now = self.clock()
        rejected = None
        with self.store.transaction(user_id):
            self.store.ensure_user(user_id, now)
            state = self._reconcile(user_id, now)
            if is_trading_off(state, now):
                rejected = state
            else:
                if outcome == OUTCOME_LOSS:
                    change = OutcomeApplied(
                        trades_today=state.trades_today + 1,
                        losses_today=state.losses_today + 1,
                        loss_streak=state.loss_streak + 1,
                    )
                else:
                    change = OutcomeApplied(
                        trades_today=state.trades_today + 1,
                        losses_today=state.losses_today,
                        loss_streak=0,
                    )
                self.store.apply_state(user_id, change, now)
                self.store.add_event(user_id, EventType.RECORD, outcome, now)
                state = self._enforce_limits(user_id, now)

        # Raised after commit so the reconcile above is kept.
        if rejected is not None:
            logger.info("Rejected %s for user %s: %s", outcome, user_id, rejected.off_reason)
            raise TradingOffError(rejected)
        return state

    def update_settings(self, user_id, candidate: Optional[Mapping[str, Any]] = None) -> GuardSettings:
        user_id = normalize_user_id(user_id)
        values = clamp_settings(candidate)
        now = self.clock()
        with self.store.transaction(user_id):
            self.store.ensure_user(user_id, now)
            row = self.store.write_settings(user_id, values, now)
            self.store.add_event(
                user_id,
                EventType.SETTINGS_UPDATE,
                f"mtd={values.max_trades_per_day}, mld={values.max_losses_per_day}, "
                f"mls={values.max_loss_streak}, tz={values.timezone_offset_min}",
                now,
            )
            self._reconcile(user_id, now)
            self._enforce_limits(user_id, now)
            return row

    def list_events(self, user_id, limit: Optional[int] = None) -> list[GuardEvent]:
        user_id = normalize_user_id(user_id)
        cap = min(MAX_EVENTS, int(app_settings.EVENTS_LIMIT))
        limit = cap if limit is None else max(1, min(cap, int(limit)))
        with self.store.transaction(user_id):
            self.store.ensure_user(user_id, self.clock())
            return self.store.list_events(user_id, limit)

    # steps; callers hold the user's transaction

    def _reconcile(self, user_id: str, now: int) -> GuardState:
        settings = self.store.get_settings(user_id)
        state = self.store.get_state(user_id, for_update=True)
        today = day_key(now, settings.timezone_offset_min)

        if state.day_key != today:
            # A stop reaching past the new day's start is carried over.
            clear_stop = state.trading_off_until_ts <= now
            state = self.store.apply_state(user_id, DayRollover(today, clear_stop), now)
            self.store.add_event(user_id, EventType.DAY_RESET, f"Reset to {today}", now)
            logger.debug("Day reset for user %s to %s", user_id, today)
        elif 0 < state.trading_off_until_ts <= now:
            state = self.store.apply_state(user_id, StopCleared(), now)
            self.store.add_event(user_id, EventType.STOP_EXPIRED, "Stop expired, trading enabled", now)
            logger.info("Stop expired for user %s", user_id)

        return state

    def _enforce_limits(self, user_id: str, now: int) -> GuardState:
        settings = self.store.get_settings(user_id)
        state = self.store.get_state(user_id, for_update=True)
        if is_trading_off(state, now):
            return state

        reason = limit_breach_reason(settings, state)
        if not reason:
            return state

        off_until = start_of_next_local_day(now, settings.timezone_offset_min)
        state = self.store.apply_state(user_id, StopSet(off_until, reason), now)
        self.store.add_event(user_id, EventType.STOP_DAY, f"{reason}; off until {off_until}", now)
        logger.info("Trading off for user %s until %s: %s", user_id, off_until, reason)
        return state
