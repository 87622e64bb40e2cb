import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from apps.api.app.main import app
from apps.api.app.api.deps import get_guard_engine
from apps.api.app.db.session import Base, engine, get_db
from apps.api.app.services.guard_engine import GuardEngine
from apps.api.app.services.guard_store import GuardStore



@pytest.fixture()
def client(clock):
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    def _engine_with_clock(db: Session = Depends(get_db)) -> GuardEngine:
        return GuardEngine(GuardStore(db), clock=clock)

    app.dependency_overrides[get_guard_engine] = _engine_with_clock
    try:
        with TestClient(app) as tc:
            yield tc
    finally:
        app.dependency_overrides.clear()
