from sqlalchemy import Column, Integer, String, Text

from apps.api.app.db.session import Base


class GuardEvent(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tg_user_id = Column(String, index=True, nullable=False)
    ts = Column(Integer, index=True, nullable=False)
    type = Column(String, nullable=False)
    detail = Column(Text, nullable=False)


class EventType:
    DAY_RESET = "DAY_RESET"
    STOP_EXPIRED = "STOP_EXPIRED"
    STOP_DAY = "STOP_DAY"
    SETTINGS_UPDATE = "SETTINGS_UPDATE"
    RECORD = "RECORD"
