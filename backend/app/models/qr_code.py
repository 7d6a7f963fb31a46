"""
Modèle SQLAlchemy pour les QR codes de présence.
La colonne `code` est le secret encodé dans l'image, présenté au scan.
"""

import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


def _new_code() -> str:
    return str(uuid.uuid4())


class QRCode(Base):
    """Code de courte durée lié à une session de cours."""
    __tablename__ = "qr_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(36), unique=True, nullable=False, default=_new_code)
    session_id = Column(UUID(as_uuid=True), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False)
    generated_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        # Au plus un code actif par session
        Index(
            "uq_qr_codes_active_session",
            "session_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
        # Parcours de la purge
        Index("ix_qr_codes_active_expires", "is_active", "expires_at"),
    )
