"""
Configuration partagée pour tous les tests.

- client : override de get_db par un MagicMock (aucune connexion PostgreSQL)
- session_factory / db : base SQLite fichier, pour les tests du registre des
  présences qui reposent sur une vraie contrainte d'unicité
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import uniontrack.models  # noqa: F401
from uniontrack.database import Base, get_db
from uniontrack.main import app
from uniontrack.models.event import Event
from uniontrack.models.member import Member


@pytest.fixture
def client():
    """Client HTTP de test avec la BDD mockée."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def session_factory(tmp_path):
    """Fabrique de sessions sur une base SQLite fichier (partageable entre threads)."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'uniontrack.db'}",
        connect_args={"check_same_thread": False, "timeout": 10},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def member_and_event(db):
    """Un membre et un événement persistés. Retourne (member_id, event_id)."""
    member = Member(name="Alice Martin", email="alice.martin@union.org")
    event = Event(title="Assemblée générale", event_date=datetime(2026, 11, 5, 18, 0), location="Salle B")
    db.add_all([member, event])
    db.commit()
    return member.id, event.id
