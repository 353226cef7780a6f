from __future__ import annotations

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import make_engine
from app.infra.sql_store import SqlAlchemyAdapter
from app.infra.storage_gateway import StorageGateway


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway(db):
    local = SqlAlchemyAdapter(db)
    return StorageGateway.from_stores(catalog=local, quiz=local)


@pytest.fixture
def client(db, monkeypatch):
    from fastapi.testclient import TestClient

    from app.core.config import settings
    from app.db.session import get_db
    from app.main import app

    monkeypatch.setattr(settings, "QUIZ_STORE", "local")
    app.dependency_overrides[get_db] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
