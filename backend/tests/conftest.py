# conftest.py - Fixtures comunes: app y base SQLite en memoria por test

import pytest
from fastapi.testclient import TestClient

from app.core.settings import Settings
from app.db.session import create_db_engine, create_session_factory, init_db
from app.main import create_app
from app.services.client_repository import ClientRepository

MEMORY_DB = "sqlite+pysqlite:///:memory:"


@pytest.fixture
def test_settings():
    return Settings(DATABASE_URL=MEMORY_DB, ENVIRONMENT="test", _env_file=None)


@pytest.fixture
def client(test_settings):
    app = create_app(test_settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def engine():
    engine = create_db_engine(MEMORY_DB)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = create_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def repo(db):
    return ClientRepository(db)


@pytest.fixture
def new_client_data():
    return {"name": "John Doe", "email": "JOHN@EX.com", "phone": "555-1234"}
