"""
Tests d'intégration API pour la connexion par lien magique (chemin de développement).
"""

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest

from uniontrack.config import settings
from uniontrack.exceptions import LoginUnavailable
from uniontrack.main import app
from uniontrack.models.member import Member
from uniontrack.routers.auth import get_login_token_store
from uniontrack.services.login_token_store import MemoryLoginTokenStore

SERVICE = "uniontrack.services.auth_service"


@pytest.fixture
def store():
    memory_store = MemoryLoginTokenStore()
    app.dependency_overrides[get_login_token_store] = lambda: memory_store
    yield memory_store
    app.dependency_overrides.pop(get_login_token_store, None)


def make_member():
    return Member(id=7, name="Alice Martin", email="alice.martin@union.org", membership_status="active")


def test_lien_desactive(client, store, monkeypatch):
    monkeypatch.setattr(settings, "DEV_LOGIN_ENABLED", False)
    response = client.post("/api/v1/auth/magic-link", json={"email": "alice.martin@union.org"})

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "LoginUnavailable"
    assert response.json()["detail"]["message"] == str(LoginUnavailable())


def test_email_invalide(client, store):
    response = client.post("/api/v1/auth/magic-link", json={"email": "pas-un-email"})
    assert response.status_code == 422


def test_demande_puis_verification(client, store, monkeypatch):
    monkeypatch.setattr(settings, "DEV_LOGIN_ENABLED", True)
    monkeypatch.setattr(settings, "ENV", "development")

    with patch(f"{SERVICE}.get_member_by_email", return_value=make_member()), \
         patch(f"{SERVICE}.email_service.send_magic_link_email"):
        link = client.post("/api/v1/auth/magic-link", json={"email": "alice.martin@union.org"}).json()["dev_link"]
        token = parse_qs(urlparse(link).query)["token"][0]

        first = client.post("/api/v1/auth/verify", json={"email": "alice.martin@union.org", "token": token})
        second = client.post("/api/v1/auth/verify", json={"email": "alice.martin@union.org", "token": token})

    assert first.status_code == 200
    assert first.json()["id"] == 7
    assert second.status_code == 401
    assert second.json()["detail"]["code"] == "InvalidLoginToken"
