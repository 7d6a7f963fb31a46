"""
Configuration partagée pour tous les tests.
Override get_db et get_clock pour éviter toute connexion réelle à PostgreSQL
et toute dépendance à l'heure courante.
"""

import os

# Doit être défini avant l'import de app.config
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from datetime import datetime
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.clock import FrozenClock, get_clock
from app.database import Base, get_db
from app.main import app

MANILA = ZoneInfo("Asia/Manila")


@pytest.fixture
def frozen_clock():
    """Horloge figée au lundi 19/10/2026 08:00 à Manille."""
    return FrozenClock(datetime(2026, 10, 19, 8, 0, tzinfo=MANILA))


@pytest.fixture
def client(frozen_clock):
    """Client HTTP de test avec la BDD mockée et une horloge figée."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_clock] = lambda: frozen_clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """
    Session sur une base SQLite en mémoire avec le schéma réel.
    Les index uniques partiels (sqlite_where) et la contrainte unique des
    présences y sont appliqués, contrairement aux mocks.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(engine)
        engine.dispose()
