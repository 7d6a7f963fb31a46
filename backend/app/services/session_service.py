"""
Service métier pour les sessions de cours : planification et machine à états.

Transitions (toutes réservées à l'enseignant assigné à la section) :
  start  : SCHEDULED | CANCELLED → ACTIVE      (start_time = maintenant)
  end    : ACTIVE → COMPLETED                  (end_time = maintenant)
  cancel : tout statut sauf COMPLETED → CANCELLED
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.clock import Clock, get_clock
from app.exceptions import InvalidStateError, NotFoundError
from app.models.course import Enrollment, Section
from app.models.session import ClassSession
from app.models.student import Student
from app.schemas.session import SessionCreate, SessionResponse, SessionUpdate
from app.services.access_service import get_section, require_section_teacher
from app.services.qr_code_service import deactivate_session_codes

logger = logging.getLogger(__name__)


def get_class_session(db: Session, session_id: uuid.UUID) -> ClassSession:
    """Retourne la ligne ORM de la session ou lève NotFoundError."""
    class_session = db.get(ClassSession, session_id)
    if class_session is None:
        raise NotFoundError(f"Session {session_id} introuvable.")
    return class_session


def _get_owned_session(db: Session, session_id: uuid.UUID, teacher_id: uuid.UUID) -> ClassSession:
    class_session = get_class_session(db, session_id)
    require_section_teacher(db, class_session.section_id, teacher_id)
    return class_session


def _find_other_active_session(db: Session, class_session: ClassSession) -> Optional[ClassSession]:
    return db.execute(
        select(ClassSession).where(
            ClassSession.section_id == class_session.section_id,
            ClassSession.status == "ACTIVE",
            ClassSession.id != class_session.id,
        )
    ).scalar()


def create_session(
    db: Session,
    section_id: uuid.UUID,
    teacher_id: uuid.UUID,
    data: SessionCreate,
    clock: Optional[Clock] = None,
) -> SessionResponse:
    """Planifie une nouvelle session pour une section. Le statut initial est SCHEDULED."""
    clock = clock or get_clock()
    require_section_teacher(db, section_id, teacher_id)

    class_session = ClassSession(
        section_id=section_id,
        title=data.title,
        description=data.description,
        scheduled_start=data.scheduled_start or clock.now(),
        status="SCHEDULED",
        is_active=False,
        created_by=teacher_id,
    )
    db.add(class_session)
    db.commit()
    db.refresh(class_session)

    logger.info("Session %s planifiée pour la section %s", class_session.id, section_id)
    return SessionResponse.model_validate(class_session)


def get_session(db: Session, session_id: uuid.UUID) -> SessionResponse:
    return SessionResponse.model_validate(get_class_session(db, session_id))


def list_sessions_by_section(db: Session, section_id: uuid.UUID) -> list[SessionResponse]:
    """Toutes les sessions d'une section, de la plus récente à la plus ancienne."""
    get_section(db, section_id)
    sessions = db.execute(
        select(ClassSession)
        .where(ClassSession.section_id == section_id)
        .order_by(ClassSession.scheduled_start.desc())
    ).scalars().all()
    return [SessionResponse.model_validate(s) for s in sessions]


def list_sessions_by_course(
    db: Session,
    course_id: uuid.UUID,
    status: Optional[str] = None,
) -> list[SessionResponse]:
    """
    Sessions de toutes les sections d'un cours, filtrables par statut
    (status="ACTIVE" donne les sessions ouvertes aux présences).
    """
    query = (
        select(ClassSession)
        .join(Section, Section.id == ClassSession.section_id)
        .where(Section.course_id == course_id)
    )
    if status is not None:
        query = query.where(ClassSession.status == status)

    sessions = db.execute(query.order_by(ClassSession.scheduled_start.desc())).scalars().all()
    return [SessionResponse.model_validate(s) for s in sessions]


def list_upcoming_sessions_by_teacher(
    db: Session,
    teacher_id: uuid.UUID,
    clock: Optional[Clock] = None,
) -> list[SessionResponse]:
    """
    Tableau de bord enseignant : sessions SCHEDULED à venir (scheduled_start >= maintenant)
    de toutes les sections qui lui sont assignées, la plus proche en premier.
    """
    clock = clock or get_clock()
    sessions = db.execute(
        select(ClassSession)
        .join(Section, Section.id == ClassSession.section_id)
        .where(
            Section.teacher_id == teacher_id,
            ClassSession.status == "SCHEDULED",
            ClassSession.scheduled_start >= clock.now(),
        )
        .order_by(ClassSession.scheduled_start)
    ).scalars().all()
    return [SessionResponse.model_validate(s) for s in sessions]


def list_active_sessions_for_student(db: Session, student_id: uuid.UUID) -> list[SessionResponse]:
    """
    App étudiant : sessions ACTIVE des sections où l'étudiant est inscrit,
    c'est-à-dire celles pour lesquelles il peut scanner un code.
    """
    if db.get(Student, student_id) is None:
        raise NotFoundError(f"Étudiant {student_id} introuvable.")
    sessions = db.execute(
        select(ClassSession)
        .join(Enrollment, Enrollment.section_id == ClassSession.section_id)
        .where(
            Enrollment.student_id == student_id,
            ClassSession.status == "ACTIVE",
        )
        .order_by(ClassSession.start_time.desc())
    ).scalars().all()
    return [SessionResponse.model_validate(s) for s in sessions]


def update_session(
    db: Session,
    session_id: uuid.UUID,
    teacher_id: uuid.UUID,
    data: SessionUpdate,
) -> SessionResponse:
    """Met à jour les champs descriptifs d'une session. Une session COMPLETED est en lecture seule."""
    class_session = _get_owned_session(db, session_id, teacher_id)
    if class_session.status == "COMPLETED":
        raise InvalidStateError("Impossible de modifier une session terminée (COMPLETED).")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(class_session, field, value)

    db.commit()
    db.refresh(class_session)
    return SessionResponse.model_validate(class_session)


def delete_session(db: Session, session_id: uuid.UUID, teacher_id: uuid.UUID) -> None:
    """Supprime une session ; ses QR codes partent par ON DELETE CASCADE."""
    class_session = _get_owned_session(db, session_id, teacher_id)
    db.delete(class_session)
    db.commit()
    logger.info("Session %s supprimée par l'enseignant %s", session_id, teacher_id)


def start_session(
    db: Session,
    session_id: uuid.UUID,
    teacher_id: uuid.UUID,
    clock: Optional[Clock] = None,
) -> SessionResponse:
    """
    SCHEDULED | CANCELLED → ACTIVE.

    Lève InvalidStateError si la session est ACTIVE ou COMPLETED, ou si une autre
    session de la même section est déjà ACTIVE. L'index unique partiel
    uq_sessions_active_section rattrape les activations concurrentes au commit.
    """
    clock = clock or get_clock()
    class_session = _get_owned_session(db, session_id, teacher_id)

    if class_session.status not in ("SCHEDULED", "CANCELLED"):
        raise InvalidStateError(f"Impossible de démarrer une session en statut {class_session.status}.")

    other_active = _find_other_active_session(db, class_session)
    if other_active is not None:
        raise InvalidStateError(
            f"La section a déjà une session active ({other_active.id}). Terminez-la d'abord."
        )

    class_session.status = "ACTIVE"
    class_session.is_active = True
    class_session.start_time = clock.now()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidStateError("La section a déjà une session active. Terminez-la d'abord.")
    db.refresh(class_session)

    logger.info("Session %s démarrée (section %s)", session_id, class_session.section_id)
    return SessionResponse.model_validate(class_session)


def end_session(
    db: Session,
    session_id: uuid.UUID,
    teacher_id: uuid.UUID,
    clock: Optional[Clock] = None,
) -> SessionResponse:
    """ACTIVE → COMPLETED. Les QR codes actifs de la session sont désactivés."""
    clock = clock or get_clock()
    class_session = _get_owned_session(db, session_id, teacher_id)

    if class_session.status != "ACTIVE":
        raise InvalidStateError(f"Impossible de terminer une session en statut {class_session.status}.")

    class_session.status = "COMPLETED"
    class_session.is_active = False
    class_session.end_time = clock.now()
    released = deactivate_session_codes(db, session_id)
    db.commit()
    db.refresh(class_session)

    logger.info("Session %s terminée, %d QR code(s) désactivé(s)", session_id, released)
    return SessionResponse.model_validate(class_session)


def cancel_session(db: Session, session_id: uuid.UUID, teacher_id: uuid.UUID) -> SessionResponse:
    """Tout statut sauf COMPLETED → CANCELLED."""
    class_session = _get_owned_session(db, session_id, teacher_id)

    if class_session.status == "COMPLETED":
        raise InvalidStateError("Impossible d'annuler une session terminée (COMPLETED).")

    class_session.status = "CANCELLED"
    class_session.is_active = False
    released = deactivate_session_codes(db, session_id)
    db.commit()
    db.refresh(class_session)

    logger.info("Session %s annulée, %d QR code(s) désactivé(s)", session_id, released)
    return SessionResponse.model_validate(class_session)
