from __future__ import annotations

import os
import tempfile
from datetime import datetime
from typing import Generator, Any

import pytest

from sqlalchemy.orm import sessionmaker

from ledger_backend.core.database import Base, create_db_engine, get_db
from ledger_backend.main import app
from ledger_backend import models

FIXED_NOW = datetime(2026, 3, 15, 12, 0, 0)


@pytest.fixture(scope="session")
def test_db_url() -> Generator[str, Any, Any]:
    # temporary SQLite file so the developer database is never touched
    fd, path = tempfile.mkstemp(prefix="ledger_test_", suffix=".sqlite3")
    os.close(fd)
    url = f"sqlite:///{path}"
    yield url
    try:
        os.remove(path)
    except OSError:
        pass


@pytest.fixture(scope="session")
def engine(test_db_url: str):
    eng = create_db_engine(test_db_url)
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture(scope="session")
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="function")
def db_session(engine, session_factory) -> Generator[Any, Any, Any]:
    session = session_factory()
    # seed: default config row with a small category list
    session.add(
        models.AppConfig(
            id="default",
            categories=["Rent", "Food", "Utilities", "Income"],
            currency="USD",
            start_date=1,
        )
    )
    session.commit()

    try:
        yield session
    finally:
        session.close()
        with engine.begin() as conn:
            for tbl in Base.metadata.tables.values():
                conn.execute(tbl.delete())


@pytest.fixture()
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture(autouse=True)
def override_dependency(db_session):
    # FastAPI DI override
    def _get_db_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db_override
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client(db_session):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
