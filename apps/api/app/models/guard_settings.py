from sqlalchemy import Column, ForeignKey, Integer, String

from apps.api.app.db.session import Base

DEFAULT_MAX_TRADES_PER_DAY = 6
DEFAULT_MAX_LOSSES_PER_DAY = 3
DEFAULT_MAX_LOSS_STREAK = 2
DEFAULT_TIMEZONE_OFFSET_MIN = 60


class GuardSettings(Base):
    __tablename__ = "settings"

    tg_user_id = Column(String, ForeignKey("users.tg_user_id"), primary_key=True)

    max_trades_per_day = Column(Integer, nullable=False, default=DEFAULT_MAX_TRADES_PER_DAY)
    max_losses_per_day = Column(Integer, nullable=False, default=DEFAULT_MAX_LOSSES_PER_DAY)
    max_loss_streak = Column(Integer, nullable=False, default=DEFAULT_MAX_LOSS_STREAK)
    timezone_offset_min = Column(Integer, nullable=False, default=DEFAULT_TIMEZONE_OFFSET_MIN)

    updated_at = Column(Integer, nullable=False)
