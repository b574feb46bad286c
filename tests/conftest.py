import os
from datetime import date

import pytest

# the app builds its engine at import time; keep it off the local disk
os.environ.setdefault("SHOP_REPORTS_DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from shopreports.database import get_db, load_schema, make_engine  # noqa: E402
from shopreports.seed import load_seed_data  # noqa: E402
from shopreports.store import DataStore  # noqa: E402

TODAY = date(2024, 1, 18)


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    load_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return DataStore(db)


@pytest.fixture
def seeded_store(store):
    load_seed_data(store)
    return store


@pytest.fixture
def client(session_factory):
    from shopreports.main import app, get_clock

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: (lambda: TODAY)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_client(client, session_factory):
    with session_factory() as session:
        load_seed_data(DataStore(session))
    return client
