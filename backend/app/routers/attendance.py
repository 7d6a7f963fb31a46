"""
Routers pour l'enregistrement des présences par QR code (côté étudiant)
et l'historique des présences.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.clock import Clock, get_clock
from app.database import get_db
from app.schemas.attendance import AttendanceResponse, LogAttendanceRequest
from app.security import get_current_user_id
from app.services import attendance_service

router = APIRouter(prefix="/api/v1", tags=["Attendance"])


@router.post(
    "/attendance/log",
    response_model=AttendanceResponse,
    status_code=201,
    summary="Enregistrer sa présence avec un code scanné",
)
def log_attendance(
    data: LogAttendanceRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    student_id: uuid.UUID = Depends(get_current_user_id),
):
    """
    Enregistre la présence du jour de l'étudiant appelant pour la section du code.

    Erreurs (HTTP 400, distinguées par `code`) :
    - INVALID_CODE / CODE_EXPIRED / CODE_INACTIVE : le code scanné est inutilisable
    - NOT_ENROLLED : l'étudiant n'est pas inscrit à la section
    - ALREADY_LOGGED : présence déjà enregistrée aujourd'hui (heure de fin remplie
      au second scan ; l'enregistrement est renvoyé dans `attendance`)
    """
    return attendance_service.log_attendance(db, student_id, data.code, clock=clock)


@router.get(
    "/students/{student_id}/attendance",
    response_model=List[AttendanceResponse],
    summary="Historique de présence d'un étudiant",
)
def student_attendance(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """403 si l'appelant n'est pas l'étudiant concerné."""
    return attendance_service.get_attendance_by_student(db, student_id, user_id)


@router.get(
    "/sections/{section_id}/attendance",
    response_model=List[AttendanceResponse],
    summary="Présences d'une section",
)
def section_attendance(
    section_id: uuid.UUID,
    on_date: Optional[date] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """403 si l'appelant n'est pas l'enseignant assigné à la section."""
    return attendance_service.get_attendance_by_section(db, section_id, user_id, on_date=on_date)
