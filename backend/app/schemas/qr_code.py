"""
Schémas Pydantic pour les QR codes de présence.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from app.config import settings


class QRCodeRequest(BaseModel):
    """Corps optionnel d'une demande de code. ttl_seconds vaut QR_CODE_TTL_SECONDS par défaut."""
    ttl_seconds: Optional[int] = None

    @field_validator("ttl_seconds")
    @classmethod
    def ttl_in_range(cls, v: Optional[int]) -> Optional[int]:
        if v is None:
            return v
        if v <= 0 or v > settings.QR_CODE_MAX_TTL_SECONDS:
            raise ValueError(
                f"ttl_seconds doit être compris entre 1 et {settings.QR_CODE_MAX_TTL_SECONDS}."
            )
        return v


class QRCodeResponse(BaseModel):
    id: int
    code: str
    session_id: uuid.UUID
    generated_at: datetime
    expires_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}


class SectionQRCodeResponse(BaseModel):
    """Renvoyé à l'écran enseignant qui affiche le code."""
    code: str
    session_id: uuid.UUID
    section_id: uuid.UUID
    section_name: str
    course_name: Optional[str]
    date: dt.date
    generated_at: datetime
    expires_at: datetime
    expires_in_seconds: int
    qr_image_base64: str


class SweepResult(BaseModel):
    deactivated_count: int
