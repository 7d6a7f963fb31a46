"""
Modèle SQLAlchemy pour les présences journalières.

Une ligne par (étudiant, section, date locale de cours). La contrainte unique est
la clé d'idempotence du scan : un doublon concurrent échoue au commit au lieu
de produire une seconde ligne.
"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Time, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Attendance(Base):
    __tablename__ = "attendances"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    section_id = Column(UUID(as_uuid=True), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False)

    date = Column(Date, nullable=False)             # Date calendaire locale (Asia/Manila)
    start_time = Column(Time, nullable=False)       # Premier scan, heure locale
    end_time = Column(Time, nullable=True)          # Second scan du jour, s'il existe

    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("student_id", "section_id", "date", name="uq_attendance_student_section_date"),
    )
