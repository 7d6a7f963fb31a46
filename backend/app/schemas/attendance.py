"""
Schémas Pydantic pour l'enregistrement des présences par QR code.

Note : datetime est importé comme module (dt) pour éviter le conflit entre le
champ `date` et le type `datetime.date` sous Pydantic v2.
"""

import uuid
import datetime as dt
from typing import Optional

from pydantic import BaseModel, field_validator


class LogAttendanceRequest(BaseModel):
    """Corps envoyé par l'app étudiant après le scan d'un code."""
    code: str

    @field_validator("code")
    @classmethod
    def code_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Le QR code ne peut pas être vide.")
        # Les anciennes versions de l'app préfixent le code par "attend:"
        if v.startswith("attend:"):
            v = v[len("attend:"):]
        return v


class AttendanceResponse(BaseModel):
    id: int
    student_id: uuid.UUID
    section_id: uuid.UUID
    date: dt.date
    start_time: dt.time
    end_time: Optional[dt.time]

    model_config = {"from_attributes": True}
