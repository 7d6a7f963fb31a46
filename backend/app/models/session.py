"""
Modèle SQLAlchemy pour les sessions de cours.
Nommé ClassSession pour ne pas entrer en conflit avec sqlalchemy.orm.Session.
"""

import uuid
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text, func, text
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base

SESSION_STATUSES = ("SCHEDULED", "ACTIVE", "COMPLETED", "CANCELLED")


class ClassSession(Base):
    """Une séance d'une section. SCHEDULED → ACTIVE → COMPLETED, ou CANCELLED."""
    __tablename__ = "sessions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    section_id = Column(UUID(as_uuid=True), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    scheduled_start = Column(DateTime(timezone=True), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=True)   # NULL tant que non démarrée
    end_time = Column(DateTime(timezone=True), nullable=True)     # NULL tant que non terminée

    status = Column(String(20), nullable=False, default="SCHEDULED")
    is_active = Column(Boolean, nullable=False, default=False)    # Reflète status == ACTIVE

    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in SESSION_STATUSES) + ")",
            name="ck_sessions_status",
        ),
        # Au plus une session ACTIVE par section
        Index(
            "uq_sessions_active_section",
            "section_id",
            unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
            sqlite_where=text("status = 'ACTIVE'"),
        ),
        Index("ix_sessions_section_status", "section_id", "status"),
    )
