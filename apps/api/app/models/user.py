from sqlalchemy import Column, Integer, String

from apps.api.app.db.session import Base


class User(Base):
    __tablename__ = "users"

    tg_user_id = Column(String, primary_key=True)
    created_at = Column(Integer, nullable=False)
    # refreshed on every contact ("last seen")
    updated_at = Column(Integer, nullable=False)
