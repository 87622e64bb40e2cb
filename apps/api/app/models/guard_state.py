from sqlalchemy import Column, ForeignKey, Integer, String

from apps.api.app.db.session import Base


class GuardState(Base):
    __tablename__ = "state"

    tg_user_id = Column(String, ForeignKey("users.tg_user_id"), primary_key=True)

    # YYYY-MM-DD in the user's offset; "" until the first reconcile
    day_key = Column(String, nullable=False, default="")

    trades_today = Column(Integer, nullable=False, default=0)
    losses_today = Column(Integer, nullable=False, default=0)
    loss_streak = Column(Integer, nullable=False, default=0)

    trading_off_until_ts = Column(Integer, nullable=False, default=0)  # 0 = trading on
    off_reason = Column(String, nullable=False, default="")

    updated_at = Column(Integer, nullable=False)
