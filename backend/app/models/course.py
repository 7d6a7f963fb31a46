"""
Modèles SQLAlchemy pour les cours, leurs sections et les inscriptions.
Le CRUD de ces tables vit hors du cœur présences, qui ne fait que les lire.
"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_code = Column(String(20), unique=True, nullable=False)   # Ex: "IT317"
    course_name = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Section(Base):
    """Groupe d'un cours, donné par un seul enseignant assigné."""
    __tablename__ = "sections"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    section_name = Column(String(50), nullable=False)  # Ex: "G01"
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    schedule = Column(String(100), nullable=True)      # Ex: "MWF 07:30-09:00"
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    course = relationship("Course", lazy="joined")


class Enrollment(Base):
    """Liaison section ↔ étudiants inscrits."""
    __tablename__ = "enrollments"

    section_id = Column(UUID(as_uuid=True), ForeignKey("sections.id", ondelete="CASCADE"), primary_key=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True)
    enrolled_at = Column(DateTime, server_default=func.now())
