"""
Tests d'intégration API pour les sessions de cours.
"""

import uuid
from datetime import datetime
from unittest.mock import patch
from zoneinfo import ZoneInfo

from app.exceptions import ForbiddenError, InvalidStateError, NotFoundError
from app.schemas.session import SessionResponse

TEACHER_ID = uuid.uuid4()
STUDENT_ID = uuid.uuid4()
HEADERS = {"X-User-Id": str(TEACHER_ID)}
STUDENT_HEADERS = {"X-User-Id": str(STUDENT_ID)}
NOW = datetime(2026, 10, 19, 8, 0, tzinfo=ZoneInfo("Asia/Manila"))


def make_session_response(**kwargs) -> SessionResponse:
    status = kwargs.get("status", "SCHEDULED")
    return SessionResponse(
        id=kwargs.get("id", uuid.uuid4()),
        section_id=kwargs.get("section_id", uuid.uuid4()),
        title=kwargs.get("title", "Cours 1"),
        description=None,
        scheduled_start=NOW,
        start_time=NOW if status in ("ACTIVE", "COMPLETED") else None,
        end_time=NOW if status == "COMPLETED" else None,
        status=status,
        is_active=status == "ACTIVE",
        created_at=NOW,
    )


def test_creer_session(client):
    section_id = uuid.uuid4()
    with patch("app.routers.sessions.session_service.create_session") as mock:
        mock.return_value = make_session_response(section_id=section_id)
        response = client.post(
            f"/api/v1/sections/{section_id}/sessions", json={"title": "Cours 1"}, headers=HEADERS
        )

    assert response.status_code == 201
    assert response.json()["status"] == "SCHEDULED"
    assert mock.call_args[0][2] == TEACHER_ID


def test_creer_session_enseignant_non_assigne(client):
    with patch("app.routers.sessions.session_service.create_session") as mock:
        mock.side_effect = ForbiddenError("Vous n'êtes pas l'enseignant assigné à cette section.")
        response = client.post(f"/api/v1/sections/{uuid.uuid4()}/sessions", json={}, headers=HEADERS)

    assert response.status_code == 403


def test_creer_session_sans_identite(client):
    response = client.post(f"/api/v1/sections/{uuid.uuid4()}/sessions", json={})
    assert response.status_code == 401


def test_identifiant_invalide_refuse(client):
    response = client.get(f"/api/v1/sessions/{uuid.uuid4()}", headers={"X-User-Id": "abc"})
    assert response.status_code == 401


def test_session_introuvable(client):
    with patch("app.routers.sessions.session_service.get_session") as mock:
        mock.side_effect = NotFoundError("Session introuvable.")
        response = client.get(f"/api/v1/sessions/{uuid.uuid4()}", headers=HEADERS)

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_lectures_sans_identite_refusees(client):
    """Les lectures de sessions exigent aussi X-User-Id."""
    assert client.get(f"/api/v1/sessions/{uuid.uuid4()}").status_code == 401
    assert client.get(f"/api/v1/sections/{uuid.uuid4()}/sessions").status_code == 401
    assert client.get(f"/api/v1/courses/{uuid.uuid4()}/sessions").status_code == 401


def test_sessions_section(client):
    section_id = uuid.uuid4()
    with patch("app.routers.sessions.session_service.list_sessions_by_section") as mock:
        mock.return_value = [make_session_response(section_id=section_id)]
        response = client.get(f"/api/v1/sections/{section_id}/sessions", headers=HEADERS)

    assert response.status_code == 200
    assert len(response.json()) == 1


def test_sessions_cours_filtre_statut(client):
    with patch("app.routers.sessions.session_service.list_sessions_by_course") as mock:
        mock.return_value = [make_session_response(status="ACTIVE")]
        response = client.get(f"/api/v1/courses/{uuid.uuid4()}/sessions?status=ACTIVE", headers=HEADERS)

    assert response.status_code == 200
    assert mock.call_args.kwargs["status"] == "ACTIVE"


def test_sessions_cours_statut_invalide(client):
    response = client.get(f"/api/v1/courses/{uuid.uuid4()}/sessions?status=OPEN", headers=HEADERS)
    assert response.status_code == 422


def test_mes_sessions_a_venir(client, frozen_clock):
    with patch("app.routers.sessions.session_service.list_upcoming_sessions_by_teacher") as mock:
        mock.return_value = [make_session_response(), make_session_response()]
        response = client.get("/api/v1/me/sessions/upcoming", headers=HEADERS)

    assert response.status_code == 200
    assert len(response.json()) == 2
    assert mock.call_args[0][1] == TEACHER_ID
    assert mock.call_args.kwargs["clock"] is frozen_clock


def test_mes_sessions_a_venir_sans_identite(client):
    assert client.get("/api/v1/me/sessions/upcoming").status_code == 401


def test_mes_sessions_ouvertes_etudiant(client):
    with patch("app.routers.sessions.session_service.list_active_sessions_for_student") as mock:
        mock.return_value = [make_session_response(status="ACTIVE")]
        response = client.get("/api/v1/me/sessions/active", headers=STUDENT_HEADERS)

    assert response.status_code == 200
    assert response.json()[0]["status"] == "ACTIVE"
    assert mock.call_args[0][1] == STUDENT_ID


def test_mes_sessions_ouvertes_etudiant_inconnu(client):
    with patch("app.routers.sessions.session_service.list_active_sessions_for_student") as mock:
        mock.side_effect = NotFoundError(f"Étudiant {STUDENT_ID} introuvable.")
        response = client.get("/api/v1/me/sessions/active", headers=STUDENT_HEADERS)

    assert response.status_code == 404


def test_demarrer_session(client):
    with patch("app.routers.sessions.session_service.start_session") as mock:
        mock.return_value = make_session_response(status="ACTIVE")
        response = client.post(f"/api/v1/sessions/{uuid.uuid4()}/start", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["is_active"] is True


def test_demarrer_session_terminee(client):
    with patch("app.routers.sessions.session_service.start_session") as mock:
        mock.side_effect = InvalidStateError("Impossible de démarrer une session en statut COMPLETED.")
        response = client.post(f"/api/v1/sessions/{uuid.uuid4()}/start", headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_STATE"


def test_terminer_session(client):
    with patch("app.routers.sessions.session_service.end_session") as mock:
        mock.return_value = make_session_response(status="COMPLETED")
        response = client.post(f"/api/v1/sessions/{uuid.uuid4()}/end", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"


def test_annuler_session(client):
    with patch("app.routers.sessions.session_service.cancel_session") as mock:
        mock.return_value = make_session_response(status="CANCELLED")
        response = client.post(f"/api/v1/sessions/{uuid.uuid4()}/cancel", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"


def test_supprimer_session(client):
    with patch("app.routers.sessions.session_service.delete_session") as mock:
        response = client.delete(f"/api/v1/sessions/{uuid.uuid4()}", headers=HEADERS)

    assert response.status_code == 204
    mock.assert_called_once()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
