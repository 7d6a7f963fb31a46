"""
Tests d'intégration API pour l'enregistrement des présences par QR code
et l'historique.
"""

import uuid
from datetime import date, time
from unittest.mock import patch

from app.exceptions import (
    AlreadyLoggedError,
    ForbiddenError,
    NotEnrolledError,
    TokenExpiredError,
    TokenNotFoundError,
)
from app.schemas.attendance import AttendanceResponse

STUDENT_ID = uuid.uuid4()
TEACHER_ID = uuid.uuid4()
HEADERS = {"X-User-Id": str(STUDENT_ID)}
TEACHER_HEADERS = {"X-User-Id": str(TEACHER_ID)}


def make_attendance(**kwargs) -> AttendanceResponse:
    return AttendanceResponse(
        id=kwargs.get("id", 1),
        student_id=kwargs.get("student_id", STUDENT_ID),
        section_id=kwargs.get("section_id", uuid.uuid4()),
        date=kwargs.get("date", date(2026, 10, 19)),
        start_time=kwargs.get("start_time", time(8, 0, 10)),
        end_time=kwargs.get("end_time", None),
    )


# ============================================================
# POST /api/v1/attendance/log
# ============================================================

def test_enregistrement_reussi(client):
    """Code valide → 201 avec l'enregistrement créé."""
    with patch("app.routers.attendance.attendance_service.log_attendance") as mock:
        mock.return_value = make_attendance()

        response = client.post("/api/v1/attendance/log", json={"code": "abc"}, headers=HEADERS)

    assert response.status_code == 201
    body = response.json()
    assert body["student_id"] == str(STUDENT_ID)
    assert body["date"] == "2026-10-19"
    assert body["start_time"] == "08:00:10"
    assert body["end_time"] is None
    assert mock.call_args[0][1] == STUDENT_ID
    assert mock.call_args[0][2] == "abc"


def test_prefixe_historique_retire(client):
    with patch("app.routers.attendance.attendance_service.log_attendance") as mock:
        mock.return_value = make_attendance()
        client.post("/api/v1/attendance/log", json={"code": " attend:abc "}, headers=HEADERS)

    assert mock.call_args[0][2] == "abc"


def test_deja_enregistre(client):
    """Second scan → 400 ALREADY_LOGGED avec l'enregistrement mis à jour."""
    record = make_attendance(end_time=time(8, 1))
    with patch("app.routers.attendance.attendance_service.log_attendance") as mock:
        mock.side_effect = AlreadyLoggedError("Présence déjà enregistrée pour aujourd'hui.", payload=record)

        response = client.post("/api/v1/attendance/log", json={"code": "abc"}, headers=HEADERS)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "ALREADY_LOGGED"
    assert body["attendance"]["end_time"] == "08:01:00"


def test_code_expire(client):
    with patch("app.routers.attendance.attendance_service.log_attendance") as mock:
        mock.side_effect = TokenExpiredError("Le QR code a expiré.")
        response = client.post("/api/v1/attendance/log", json={"code": "abc"}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["code"] == "CODE_EXPIRED"


def test_code_inconnu(client):
    with patch("app.routers.attendance.attendance_service.log_attendance") as mock:
        mock.side_effect = TokenNotFoundError("QR code invalide.")
        response = client.post("/api/v1/attendance/log", json={"code": "abc"}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_CODE"


def test_etudiant_non_inscrit(client):
    with patch("app.routers.attendance.attendance_service.log_attendance") as mock:
        mock.side_effect = NotEnrolledError("Vous n'êtes pas inscrit à cette section.")
        response = client.post("/api/v1/attendance/log", json={"code": "abc"}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["code"] == "NOT_ENROLLED"
    assert "pas inscrit" in response.json()["detail"]


def test_code_vide(client):
    response = client.post("/api/v1/attendance/log", json={"code": "   "}, headers=HEADERS)
    assert response.status_code == 422


def test_enregistrement_sans_identite(client):
    response = client.post("/api/v1/attendance/log", json={"code": "abc"})
    assert response.status_code == 401


def test_identite_mal_formee(client):
    response = client.post("/api/v1/attendance/log", json={"code": "abc"}, headers={"X-User-Id": "42"})
    assert response.status_code == 401


# ============================================================
# Historique
# ============================================================

def test_historique_etudiant(client):
    with patch("app.routers.attendance.attendance_service.get_attendance_by_student") as mock:
        mock.return_value = [make_attendance(), make_attendance(id=2)]
        response = client.get(f"/api/v1/students/{STUDENT_ID}/attendance", headers=HEADERS)

    assert response.status_code == 200
    assert len(response.json()) == 2
    assert mock.call_args[0][1] == STUDENT_ID
    assert mock.call_args[0][2] == STUDENT_ID


def test_historique_d_un_autre_etudiant_refuse(client):
    with patch("app.routers.attendance.attendance_service.get_attendance_by_student") as mock:
        mock.side_effect = ForbiddenError("Vous ne pouvez consulter que votre propre historique de présence.")
        response = client.get(f"/api/v1/students/{uuid.uuid4()}/attendance", headers=HEADERS)

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_historique_section_filtre_date(client):
    section_id = uuid.uuid4()
    with patch("app.routers.attendance.attendance_service.get_attendance_by_section") as mock:
        mock.return_value = []
        response = client.get(
            f"/api/v1/sections/{section_id}/attendance?date=2026-10-19", headers=TEACHER_HEADERS
        )

    assert response.status_code == 200
    assert mock.call_args[0][1] == section_id
    assert mock.call_args[0][2] == TEACHER_ID
    assert mock.call_args.kwargs["on_date"] == date(2026, 10, 19)


def test_historique_section_enseignant_non_assigne(client):
    with patch("app.routers.attendance.attendance_service.get_attendance_by_section") as mock:
        mock.side_effect = ForbiddenError("Vous n'êtes pas l'enseignant assigné à cette section.")
        response = client.get(f"/api/v1/sections/{uuid.uuid4()}/attendance", headers=TEACHER_HEADERS)

    assert response.status_code == 403


def test_historiques_sans_identite_refuses(client):
    with patch("app.routers.attendance.attendance_service.get_attendance_by_student") as by_student, \
            patch("app.routers.attendance.attendance_service.get_attendance_by_section") as by_section:
        assert client.get(f"/api/v1/students/{STUDENT_ID}/attendance").status_code == 401
        assert client.get(f"/api/v1/sections/{uuid.uuid4()}/attendance").status_code == 401

    by_student.assert_not_called()
    by_section.assert_not_called()
