"""
Service métier pour l'enregistrement des présences par QR code.

Clé d'idempotence : (student_id, section_id, date locale). Au plus une ligne
par clé ; la contrainte unique uq_attendance_student_section_date l'impose,
la recherche préalable ne sert qu'à transformer le cas courant en erreur lisible.

Un second scan le même jour renseigne end_time (une seule fois) et reste signalé
ALREADY_LOGGED ; l'enregistrement mis à jour voyage dans la charge de l'erreur.
"""

import uuid
import logging
from datetime import date, time
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.clock import Clock, get_clock
from app.exceptions import AlreadyLoggedError, ForbiddenError, NotEnrolledError, NotFoundError
from app.models.attendance import Attendance
from app.models.student import Student
from app.schemas.attendance import AttendanceResponse
from app.services.access_service import get_section, is_student_enrolled, require_section_teacher
from app.services.qr_code_service import verify_qr_code

logger = logging.getLogger(__name__)

EnrollmentCheck = Callable[[Session, uuid.UUID, uuid.UUID], bool]


def _find_attendance(
    db: Session,
    student_id: uuid.UUID,
    section_id: uuid.UUID,
    day: date,
) -> Optional[Attendance]:
    return db.execute(
        select(Attendance).where(
            Attendance.student_id == student_id,
            Attendance.section_id == section_id,
            Attendance.date == day,
        )
    ).scalar()


def _already_logged(db: Session, attendance: Attendance, now: time) -> AlreadyLoggedError:
    """Renseigne end_time s'il est vide, puis construit l'erreur portant l'enregistrement."""
    if attendance.end_time is None:
        attendance.end_time = now
        db.commit()
        db.refresh(attendance)
        logger.info(
            "Heure de fin %s enregistrée pour l'étudiant %s (section %s, %s)",
            now, attendance.student_id, attendance.section_id, attendance.date,
        )
    return AlreadyLoggedError(
        "Présence déjà enregistrée pour aujourd'hui.",
        payload=AttendanceResponse.model_validate(attendance),
    )


def log_attendance(
    db: Session,
    student_id: uuid.UUID,
    code: str,
    clock: Optional[Clock] = None,
    enrollment_check: EnrollmentCheck = is_student_enrolled,
) -> AttendanceResponse:
    """
    Enregistre la présence d'un étudiant qui a scanné un QR code.

    Étapes :
    1. Vérifier le code (les erreurs de verify_qr_code remontent telles quelles)
    2. Session → section, puis contrôle de l'inscription de l'étudiant
    3. Date et heure locales calculées à partir d'une seule lecture de l'horloge
    4. Ligne existante aujourd'hui → end_time si vide, puis AlreadyLoggedError
    5. Sinon insertion ; une violation de la contrainte unique au commit (scan
       concurrent) relit la ligne gagnante et suit le même chemin qu'en 4
    """
    clock = clock or get_clock()

    # 1. Code → session
    class_session = verify_qr_code(db, code, clock)
    section_id = class_session.section_id

    # 2. Étudiant + inscription
    if db.get(Student, student_id) is None:
        raise NotFoundError(f"Étudiant {student_id} introuvable.")
    get_section(db, section_id)
    if not enrollment_check(db, section_id, student_id):
        raise NotEnrolledError("Vous n'êtes pas inscrit à cette section.")

    # 3. Date et heure locales du même instant
    instant = clock.now()
    today = instant.date()
    now = instant.time().replace(tzinfo=None)

    # 4. Déjà présent aujourd'hui ?
    existing = _find_attendance(db, student_id, section_id, today)
    if existing is not None:
        raise _already_logged(db, existing, now)

    # 5. Insertion ; la contrainte unique tranche les scans concurrents
    attendance = Attendance(
        student_id=student_id,
        section_id=section_id,
        date=today,
        start_time=now,
        end_time=None,
    )
    db.add(attendance)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        winner = _find_attendance(db, student_id, section_id, today)
        if winner is None:
            raise
        logger.debug("Scan concurrent pour l'étudiant %s (section %s, %s)", student_id, section_id, today)
        raise _already_logged(db, winner, now)
    db.refresh(attendance)

    logger.info("Présence enregistrée : étudiant %s, section %s, %s %s", student_id, section_id, today, now)
    return AttendanceResponse.model_validate(attendance)


def get_attendance_by_student(
    db: Session,
    student_id: uuid.UUID,
    requester_id: uuid.UUID,
) -> list[AttendanceResponse]:
    """Historique de présence d'un étudiant, le plus récent d'abord. Réservé à l'étudiant lui-même."""
    if requester_id != student_id:
        raise ForbiddenError("Vous ne pouvez consulter que votre propre historique de présence.")
    if db.get(Student, student_id) is None:
        raise NotFoundError(f"Étudiant {student_id} introuvable.")
    rows = db.execute(
        select(Attendance)
        .where(Attendance.student_id == student_id)
        .order_by(Attendance.date.desc(), Attendance.start_time.desc())
    ).scalars().all()
    return [AttendanceResponse.model_validate(a) for a in rows]


def get_attendance_by_section(
    db: Session,
    section_id: uuid.UUID,
    requester_id: uuid.UUID,
    on_date: Optional[date] = None,
) -> list[AttendanceResponse]:
    """Présences d'une section, éventuellement limitées à une date. Réservé à l'enseignant assigné."""
    require_section_teacher(db, section_id, requester_id)
    query = select(Attendance).where(Attendance.section_id == section_id)
    if on_date is not None:
        query = query.where(Attendance.date == on_date)
    rows = db.execute(
        query.order_by(Attendance.date.desc(), Attendance.start_time)
    ).scalars().all()
    return [AttendanceResponse.model_validate(a) for a in rows]
