"""
Prédicats d'autorisation du cœur présences.

L'appartenance (enseignant assigné à la section) et l'inscription (étudiant
de la section) sont vérifiées ici et passées explicitement aux services.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.exceptions import ForbiddenError, NotFoundError
from app.models.course import Enrollment, Section


def get_section(db: Session, section_id: uuid.UUID) -> Section:
    """Retourne la section ou lève NotFoundError."""
    section = db.get(Section, section_id)
    if section is None:
        raise NotFoundError(f"Section {section_id} introuvable.")
    return section


def is_section_teacher(section: Section, teacher_id: uuid.UUID) -> bool:
    return section.teacher_id is not None and section.teacher_id == teacher_id


def require_section_teacher(db: Session, section_id: uuid.UUID, teacher_id: uuid.UUID) -> Section:
    """
    Charge la section et vérifie que teacher_id en est l'enseignant assigné.
    Lève NotFoundError si la section est absente, ForbiddenError sinon.
    """
    section = get_section(db, section_id)
    if not is_section_teacher(section, teacher_id):
        raise ForbiddenError("Vous n'êtes pas l'enseignant assigné à cette section.")
    return section


def is_student_enrolled(db: Session, section_id: uuid.UUID, student_id: uuid.UUID) -> bool:
    enrollment = db.execute(
        select(Enrollment).where(
            Enrollment.section_id == section_id,
            Enrollment.student_id == student_id,
        )
    ).scalar()
    return enrollment is not None
