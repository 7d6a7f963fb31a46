"""
Schémas Pydantic pour les sessions de cours.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class SessionCreate(BaseModel):
    """Corps de planification d'une session. scheduled_start vaut maintenant par défaut."""
    title: Optional[str] = None
    description: Optional[str] = None
    scheduled_start: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_stripped(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None


class SessionUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    scheduled_start: Optional[datetime] = None


class SessionResponse(BaseModel):
    id: uuid.UUID
    section_id: uuid.UUID
    title: Optional[str]
    description: Optional[str]
    scheduled_start: datetime
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    status: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
