import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import apps.api.app.models.user
import apps.api.app.models.guard_settings
import apps.api.app.models.guard_state
import apps.api.app.models.guard_event
from apps.api.app.db.session import Base, make_engine
from apps.api.app.services.guard_engine import GuardEngine
from apps.api.app.services.guard_store import GuardStore


@pytest.fixture()
def db_engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(bind=eng)
        eng.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def guard(db_session, clock):
    return GuardEngine(GuardStore(db_session), clock=clock)
