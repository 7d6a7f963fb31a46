"""
Routers pour les QR codes de présence (côté enseignant).
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.clock import Clock, get_clock
from app.database import get_db
from app.schemas.qr_code import QRCodeRequest, QRCodeResponse, SectionQRCodeResponse, SweepResult
from app.security import get_current_user_id
from app.services import qr_code_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["QR codes"])


@router.post(
    "/sections/{section_id}/qr-code",
    response_model=SectionQRCodeResponse,
    status_code=201,
    summary="Générer le code de présence d'une section",
)
def generate_section_code(
    section_id: uuid.UUID,
    data: Optional[QRCodeRequest] = Body(default=None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """
    Émet un code pour la session active de la section et le renvoie avec son image PNG.
    Le code précédent de la session cesse de fonctionner.

    Retourne 400 (NO_ACTIVE_SESSION) si aucune session n'est active,
    403 si l'appelant n'est pas l'enseignant de la section.
    """
    ttl = data.ttl_seconds if data else None
    return qr_code_service.generate_section_code(db, section_id, user_id, ttl_seconds=ttl, clock=clock)


@router.post(
    "/sessions/{session_id}/qr-codes",
    response_model=QRCodeResponse,
    status_code=201,
    summary="Émettre un code pour une session",
)
def issue_qr_code(
    session_id: uuid.UUID,
    data: Optional[QRCodeRequest] = Body(default=None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    ttl = data.ttl_seconds if data else None
    return qr_code_service.issue_qr_code(db, session_id, user_id, ttl_seconds=ttl, clock=clock)


@router.get(
    "/sessions/{session_id}/qr-codes",
    response_model=List[QRCodeResponse],
    summary="Codes actifs d'une session",
    dependencies=[Depends(get_current_user_id)],
)
def list_active_qr_codes(session_id: uuid.UUID, db: Session = Depends(get_db)):
    return qr_code_service.get_active_qr_codes(db, session_id)


@router.post(
    "/qr-codes/{qr_code_id}/deactivate",
    response_model=QRCodeResponse,
    summary="Désactiver un code",
)
def deactivate_qr_code(
    qr_code_id: int,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return qr_code_service.deactivate_qr_code(db, qr_code_id, user_id)


@router.get(
    "/qr-codes/{code}/image",
    summary="Image PNG d'un code",
    dependencies=[Depends(get_current_user_id)],
)
def qr_code_image(code: str):
    return Response(content=qr_code_service.generate_qr_image(code), media_type="image/png")


@router.post("/qr-codes/sweep", response_model=SweepResult, summary="Désactiver les codes expirés maintenant")
def sweep_expired(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Même tâche que le tick du scheduler ; peut être appelée à tout moment."""
    count = qr_code_service.sweep_expired_qr_codes(db, clock=clock)
    logger.info("Purge manuelle demandée par %s : %d code(s) désactivé(s)", user_id, count)
    return SweepResult(deactivated_count=count)
