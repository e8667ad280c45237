"""
Tests d'intégration API pour le check-in par jeton.
Endpoints : /api/v1/events/{id}/checkin/token, /checkin/token/image,
/checkin, /attendance, et /api/v1/checkin/token/inspect.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from uniontrack.exceptions import AlreadyCheckedIn, EventNotFound, Expired, MemberNotFound, StorageError
from uniontrack.schemas.checkin import AttendanceResponse
from uniontrack.services.checkin_token import issue_token

ROUTER = "uniontrack.routers.events"


# --- Helper ---

def make_attendance_response(**kwargs) -> AttendanceResponse:
    return AttendanceResponse(
        id=kwargs.get("id", 1),
        member_id=kwargs.get("member_id", 7),
        event_id=kwargs.get("event_id", 10),
        checked_in_at=datetime(2026, 11, 5, 18, 5, tzinfo=timezone.utc),
    )


# ============================================================
# POST /api/v1/events/{id}/checkin/token
# ============================================================

def test_emission_jeton(client):
    """Événement existant → 201 avec jeton, expiration et QR code."""
    with patch(f"{ROUTER}.get_event", return_value=object()):
        response = client.post("/api/v1/events/10/checkin/token")

    assert response.status_code == 201
    data = response.json()
    assert data["event_id"] == 10
    assert data["expires_in_seconds"] == 7200
    assert data["qr_code"].startswith("data:image/png;base64,")
    assert data["token"].count(".") == 2


def test_emission_duree_personnalisee(client):
    with patch(f"{ROUTER}.get_event", return_value=object()):
        response = client.post("/api/v1/events/10/checkin/token?ttl_hours=0.5")

    assert response.status_code == 201
    assert response.json()["expires_in_seconds"] == 1800


def test_emission_duree_invalide(client):
    """ttl_hours non numérique ou non positif → 400 InvalidDuration."""
    with patch(f"{ROUTER}.get_event", return_value=object()):
        for raw in ("abc", "0", "-3"):
            response = client.post(f"/api/v1/events/10/checkin/token?ttl_hours={raw}")
            assert response.status_code == 400
            assert response.json()["detail"]["code"] == "InvalidDuration"


def test_emission_evenement_introuvable(client):
    with patch(f"{ROUTER}.get_event", return_value=None):
        response = client.post("/api/v1/events/404/checkin/token")

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "EventNotFound"


def test_emission_event_id_invalide(client):
    response = client.post("/api/v1/events/abc/checkin/token")
    assert response.status_code == 422


# ============================================================
# GET /api/v1/events/{id}/checkin/token/image
# ============================================================

def test_image_png(client):
    with patch(f"{ROUTER}.get_event", return_value=object()):
        response = client.get("/api/v1/events/10/checkin/token/image")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert 'filename="checkin-event-10.png"' in response.headers["content-disposition"]
    assert response.content[:4] == b"\x89PNG"


def test_image_evenement_introuvable(client):
    with patch(f"{ROUTER}.get_event", return_value=None):
        response = client.get("/api/v1/events/10/checkin/token/image")
    assert response.status_code == 404


# ============================================================
# POST /api/v1/events/{id}/checkin
# ============================================================

def test_check_in_succes(client):
    with patch(f"{ROUTER}.checkin_service.check_in_member") as mock:
        mock.return_value = make_attendance_response()
        response = client.post("/api/v1/events/10/checkin", json={"member_id": 7, "token": "jeton"})

    assert response.status_code == 201
    assert response.json()["member_id"] == 7
    mock.assert_called_once()
    assert mock.call_args.args[1:] == (10, 7, "jeton")


def test_check_in_deja_enregistre(client):
    with patch(f"{ROUTER}.checkin_service.check_in_member", side_effect=AlreadyCheckedIn()):
        response = client.post("/api/v1/events/10/checkin", json={"member_id": 7, "token": "jeton"})

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "AlreadyCheckedIn"


def test_check_in_jeton_expire(client):
    with patch(f"{ROUTER}.checkin_service.check_in_member", side_effect=Expired()):
        response = client.post("/api/v1/events/10/checkin", json={"member_id": 7, "token": "jeton"})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "Expired"


def test_check_in_membre_introuvable(client):
    with patch(f"{ROUTER}.checkin_service.check_in_member", side_effect=MemberNotFound()):
        response = client.post("/api/v1/events/10/checkin", json={"member_id": 7, "token": "jeton"})
    assert response.status_code == 404


def test_check_in_registre_indisponible(client):
    with patch(f"{ROUTER}.checkin_service.check_in_member", side_effect=StorageError()):
        response = client.post("/api/v1/events/10/checkin", json={"member_id": 7, "token": "jeton"})
    assert response.status_code == 503


def test_check_in_jeton_vide(client):
    response = client.post("/api/v1/events/10/checkin", json={"member_id": 7, "token": "  "})
    assert response.status_code == 422


def test_check_in_jeton_d_un_autre_evenement(client):
    """Chaîne complète : jeton émis pour l'événement 11 présenté à l'événement 10 → 400 EventMismatch."""
    token = issue_token(11).token
    with patch("uniontrack.services.checkin_service.get_event", return_value=object()), \
         patch("uniontrack.services.checkin_service.get_member", return_value=object()), \
         patch("uniontrack.services.checkin_service.attendance_ledger.insert_if_absent") as mock_insert:
        response = client.post("/api/v1/events/10/checkin", json={"member_id": 7, "token": token})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "EventMismatch"
    mock_insert.assert_not_called()


# ============================================================
# Registre des présences
# ============================================================

def test_liste_des_presences(client):
    with patch(f"{ROUTER}.checkin_service.get_event_attendance") as mock:
        mock.return_value = [make_attendance_response(), make_attendance_response(id=2, member_id=8)]
        response = client.get("/api/v1/events/10/attendance")

    assert response.status_code == 200
    data = response.json()
    assert data["attendance_count"] == 2
    assert [a["member_id"] for a in data["attendance"]] == [7, 8]


def test_liste_evenement_introuvable(client):
    with patch(f"{ROUTER}.checkin_service.get_event_attendance", side_effect=EventNotFound()):
        response = client.get("/api/v1/events/10/attendance")
    assert response.status_code == 404


def test_statut_de_check_in(client):
    with patch(f"{ROUTER}.checkin_service.is_checked_in", return_value=True):
        response = client.get("/api/v1/events/10/attendance/7")

    assert response.status_code == 200
    assert response.json() == {"event_id": 10, "member_id": 7, "checked_in": True}


# ============================================================
# POST /api/v1/checkin/token/inspect
# ============================================================

def test_inspect_jeton_expire(client):
    past = datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)
    token = issue_token(1, timedelta(hours=1), now=past).token

    response = client.post("/api/v1/checkin/token/inspect", json={"token": token})

    assert response.status_code == 200
    data = response.json()
    assert data["expired"] is True
    assert data["expires_at"].startswith("2020-01-01T13:00:00")


def test_inspect_jeton_illisible(client):
    response = client.post("/api/v1/checkin/token/inspect", json={"token": "n'importe quoi"})

    assert response.status_code == 200
    assert response.json() == {"expires_at": None, "expired": None}


def test_health(client):
    response = client.get("/api/health")
    assert response.json()["status"] == "ok"


def test_cors_origine_localhost_acceptee(client):
    response = client.options(
        "/api/health",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )
    assert response.headers.get("access-control-allow-origin") == "http://localhost:5173"


def test_cors_origine_externe_refusee(client):
    response = client.options(
        "/api/health",
        headers={"Origin": "https://autre-site.org", "Access-Control-Request-Method": "GET"},
    )
    assert "access-control-allow-origin" not in response.headers
