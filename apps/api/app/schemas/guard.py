from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # kept loose so a missing or empty id maps to a 400, not a 422
    tg_user_id: Optional[Any] = Field(default=None, alias="tgUserId")


class BootstrapIn(UserRef):
    pass


class SettingsIn(UserRef):
    max_trades_per_day: Optional[Any] = Field(default=None, alias="maxTradesPerDay")
    max_losses_per_day: Optional[Any] = Field(default=None, alias="maxLossesPerDay")
    max_loss_streak: Optional[Any] = Field(default=None, alias="maxLossStreak")
    timezone_offset_min: Optional[Any] = Field(default=None, alias="timezoneOffsetMin")

    def candidate(self) -> dict:
        return self.model_dump(exclude={"tg_user_id"})


class RecordIn(UserRef):
    outcome: Optional[Any] = None


class SettingsOut(BaseModel):
    tg_user_id: str
    max_trades_per_day: int
    max_losses_per_day: int
    max_loss_streak: int
    timezone_offset_min: int
    updated_at: int

    class Config:
        from_attributes = True


class StateOut(BaseModel):
    tg_user_id: str
    day_key: str
    trades_today: int
    losses_today: int
    loss_streak: int
    trading_off_until_ts: int
    off_reason: str
    updated_at: int

    class Config:
        from_attributes = True


class SnapshotOut(BaseModel):
    settings: SettingsOut
    state: StateOut

    class Config:
        from_attributes = True


class EventOut(BaseModel):
    ts: int
    type: str
    detail: str

    class Config:
        from_attributes = True


class EventsOut(BaseModel):
    events: list[EventOut]


class ErrorOut(BaseModel):
    error: str


class TradingOffOut(ErrorOut):
    state: StateOut
