"""
Routers pour les sessions de cours : planification et transitions d'état.
Les mutations sont réservées à l'enseignant assigné à la section (X-User-Id).
"""

import uuid
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.clock import Clock, get_clock
from app.database import get_db
from app.schemas.session import SessionCreate, SessionResponse, SessionUpdate
from app.security import get_current_user_id
from app.services import session_service

router = APIRouter(prefix="/api/v1", tags=["Sessions"])

SessionStatus = Literal["SCHEDULED", "ACTIVE", "COMPLETED", "CANCELLED"]


@router.get(
    "/me/sessions/upcoming",
    response_model=List[SessionResponse],
    summary="Sessions à venir de l'enseignant connecté",
)
def list_my_upcoming_sessions(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Sessions SCHEDULED de toutes les sections de l'enseignant, la plus proche en premier."""
    return session_service.list_upcoming_sessions_by_teacher(db, user_id, clock=clock)


@router.get(
    "/me/sessions/active",
    response_model=List[SessionResponse],
    summary="Sessions ouvertes au scan pour l'étudiant connecté",
)
def list_my_active_sessions(
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """
    Sessions ACTIVE des sections où l'étudiant est inscrit.
    L'app étudiant s'en sert pour savoir pour quel cours elle peut scanner.
    """
    return session_service.list_active_sessions_for_student(db, user_id)


@router.post(
    "/sections/{section_id}/sessions",
    response_model=SessionResponse,
    status_code=201,
    summary="Planifier une session",
)
def create_session(
    section_id: uuid.UUID,
    data: SessionCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Crée une session SCHEDULED pour la section. 403 si l'appelant n'y est pas assigné."""
    return session_service.create_session(db, section_id, user_id, data, clock=clock)


@router.get(
    "/sections/{section_id}/sessions",
    response_model=List[SessionResponse],
    summary="Sessions d'une section",
    dependencies=[Depends(get_current_user_id)],
)
def list_section_sessions(section_id: uuid.UUID, db: Session = Depends(get_db)):
    return session_service.list_sessions_by_section(db, section_id)


@router.get(
    "/courses/{course_id}/sessions",
    response_model=List[SessionResponse],
    summary="Sessions d'un cours",
    dependencies=[Depends(get_current_user_id)],
)
def list_course_sessions(
    course_id: uuid.UUID,
    status: Optional[SessionStatus] = Query(default=None),
    db: Session = Depends(get_db),
):
    """Toutes les sessions des sections du cours ; ?status=ACTIVE liste celles ouvertes."""
    return session_service.list_sessions_by_course(db, course_id, status=status)


@router.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    summary="Détail d'une session",
    dependencies=[Depends(get_current_user_id)],
)
def get_session(session_id: uuid.UUID, db: Session = Depends(get_db)):
    return session_service.get_session(db, session_id)


@router.put("/sessions/{session_id}", response_model=SessionResponse, summary="Modifier une session")
def update_session(
    session_id: uuid.UUID,
    data: SessionUpdate,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Seuls les champs fournis sont modifiés. 400 sur une session COMPLETED."""
    return session_service.update_session(db, session_id, user_id, data)


@router.delete("/sessions/{session_id}", status_code=204, summary="Supprimer une session")
def delete_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    session_service.delete_session(db, session_id, user_id)


@router.post("/sessions/{session_id}/start", response_model=SessionResponse, summary="Démarrer une session")
def start_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """
    SCHEDULED ou CANCELLED → ACTIVE.
    Retourne 400 si la session est déjà ACTIVE ou COMPLETED, ou si une autre
    session de la section est encore active.
    """
    return session_service.start_session(db, session_id, user_id, clock=clock)


@router.post("/sessions/{session_id}/end", response_model=SessionResponse, summary="Terminer une session")
def end_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """ACTIVE → COMPLETED. Les QR codes de la session cessent immédiatement de fonctionner."""
    return session_service.end_session(db, session_id, user_id, clock=clock)


@router.post("/sessions/{session_id}/cancel", response_model=SessionResponse, summary="Annuler une session")
def cancel_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Tout statut sauf COMPLETED → CANCELLED."""
    return session_service.cancel_session(db, session_id, user_id)
