"""
Service métier pour les QR codes de présence.

Flux :
  1. L'enseignant demande un code pour la session ACTIVE d'une de ses sections
  2. Tous les codes actifs de cette session sont désactivés, puis un nouveau est créé
     (generated_at = maintenant, expires_at = maintenant + ttl)
  3. Les étudiants présentent le code via attendance_service.log_attendance,
     qui appelle verify_qr_code
  4. Le scheduler désactive périodiquement les codes expirés (sweep_expired_qr_codes) ;
     la vérification recontrôle elle-même l'expiration et ne dépend jamais de la purge
"""

import io
import base64
import logging
import uuid
from datetime import timedelta
from typing import Optional

import qrcode
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.clock import Clock, get_clock
from app.config import settings
from app.exceptions import (
    AttendanceError,
    InvalidStateError,
    IssuanceConflictError,
    NoActiveSessionError,
    NotFoundError,
    TokenExpiredError,
    TokenInactiveError,
    TokenNotFoundError,
)
from app.models.qr_code import QRCode
from app.models.session import ClassSession
from app.schemas.qr_code import QRCodeResponse, SectionQRCodeResponse
from app.services.access_service import require_section_teacher

logger = logging.getLogger(__name__)


def generate_qr_image(code: str) -> bytes:
    """Génère un QR code PNG encodant la valeur donnée."""
    qr = qrcode.QRCode(version=None, box_size=10, border=4)
    qr.add_data(code)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def deactivate_session_codes(db: Session, session_id: uuid.UUID) -> int:
    """
    Passe is_active = False sur tous les codes actifs d'une session et flush.
    Ne committe pas : la transaction appartient à l'appelant.
    """
    codes = db.execute(
        select(QRCode).where(
            QRCode.session_id == session_id,
            QRCode.is_active.is_(True),
        )
    ).scalars().all()

    for qr_code in codes:
        qr_code.is_active = False

    # Sans flush(), SQLAlchemy peut envoyer l'INSERT du nouveau code avant les UPDATEs,
    # ce qui viole l'index unique partiel uq_qr_codes_active_session
    db.flush()
    return len(codes)


def _issue(db: Session, class_session: ClassSession, ttl_seconds: Optional[int], clock: Clock) -> QRCode:
    """Remplace les codes actifs de la session par un nouveau et committe."""
    ttl = settings.QR_CODE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    if ttl <= 0 or ttl > settings.QR_CODE_MAX_TTL_SECONDS:
        raise AttendanceError(
            f"ttl_seconds doit être compris entre 1 et {settings.QR_CODE_MAX_TTL_SECONDS}."
        )

    superseded = deactivate_session_codes(db, class_session.id)

    now = clock.now()
    qr_code = QRCode(
        code=str(uuid.uuid4()),
        session_id=class_session.id,
        generated_at=now,
        expires_at=now + timedelta(seconds=ttl),
        is_active=True,
    )
    db.add(qr_code)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise IssuanceConflictError(
            "Un autre QR code a été généré pour cette session au même moment. Réessayez."
        )
    db.refresh(qr_code)

    logger.info(
        "QR code %s émis pour la session %s (ttl %ds, %d remplacé(s))",
        qr_code.id, class_session.id, ttl, superseded,
    )
    return qr_code


def issue_qr_code(
    db: Session,
    session_id: uuid.UUID,
    teacher_id: uuid.UUID,
    ttl_seconds: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> QRCodeResponse:
    """
    Émet un nouveau code pour une session.

    Lève NotFoundError si la session est introuvable, ForbiddenError si l'enseignant
    n'est pas assigné à sa section, InvalidStateError si la session n'est pas ACTIVE.
    """
    clock = clock or get_clock()
    class_session = db.get(ClassSession, session_id)
    if class_session is None:
        raise NotFoundError(f"Session {session_id} introuvable.")
    require_section_teacher(db, class_session.section_id, teacher_id)
    if class_session.status != "ACTIVE":
        raise InvalidStateError(
            "Les QR codes ne peuvent être générés que pour une session active "
            f"(statut {class_session.status})."
        )

    return QRCodeResponse.model_validate(_issue(db, class_session, ttl_seconds, clock))


def generate_section_code(
    db: Session,
    section_id: uuid.UUID,
    teacher_id: uuid.UUID,
    ttl_seconds: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> SectionQRCodeResponse:
    """
    Bouton "générer un code" de l'enseignant : retrouve la session ACTIVE de la
    section et émet un code pour elle, avec l'image PNG prête à afficher.
    """
    clock = clock or get_clock()
    section = require_section_teacher(db, section_id, teacher_id)

    class_session = db.execute(
        select(ClassSession).where(
            ClassSession.section_id == section_id,
            ClassSession.status == "ACTIVE",
        )
    ).scalars().first()
    if class_session is None:
        raise NoActiveSessionError(
            "Aucune session active pour cette section. Démarrez d'abord une session."
        )

    qr_code = _issue(db, class_session, ttl_seconds, clock)
    image = base64.b64encode(generate_qr_image(qr_code.code)).decode("ascii")
    expires_at = clock.as_local(qr_code.expires_at)
    generated_at = clock.as_local(qr_code.generated_at)

    return SectionQRCodeResponse(
        code=qr_code.code,
        session_id=class_session.id,
        section_id=section.id,
        section_name=section.section_name,
        course_name=section.course.course_name if section.course else None,
        date=generated_at.date(),
        generated_at=generated_at,
        expires_at=expires_at,
        expires_in_seconds=int((expires_at - generated_at).total_seconds()),
        qr_image_base64=image,
    )


def verify_qr_code(db: Session, code: str, clock: Optional[Clock] = None) -> ClassSession:
    """
    Valide un code présenté et retourne sa session.

    Ordre des contrôles : inconnu → TokenNotFoundError, expiré → TokenExpiredError
    (le code est désactivé au passage), inactif → TokenInactiveError.
    Le statut de la session n'est pas recontrôlé : un code n'est émis que pour une
    session ACTIVE et terminer une session désactive ses codes.
    """
    clock = clock or get_clock()
    qr_code = db.execute(select(QRCode).where(QRCode.code == code)).scalar()
    if qr_code is None:
        raise TokenNotFoundError("QR code invalide.")

    if clock.now() > clock.as_local(qr_code.expires_at):
        if qr_code.is_active:
            qr_code.is_active = False
            db.commit()
        raise TokenExpiredError("Le QR code a expiré.")

    if not qr_code.is_active:
        raise TokenInactiveError("Le QR code n'est plus actif.")

    class_session = db.get(ClassSession, qr_code.session_id)
    if class_session is None:
        raise NotFoundError(f"Session {qr_code.session_id} introuvable.")
    return class_session


def get_active_qr_codes(db: Session, session_id: uuid.UUID) -> list[QRCodeResponse]:
    if db.get(ClassSession, session_id) is None:
        raise NotFoundError(f"Session {session_id} introuvable.")
    codes = db.execute(
        select(QRCode)
        .where(QRCode.session_id == session_id, QRCode.is_active.is_(True))
        .order_by(QRCode.generated_at.desc())
    ).scalars().all()
    return [QRCodeResponse.model_validate(c) for c in codes]


def deactivate_qr_code(db: Session, qr_code_id: int, teacher_id: uuid.UUID) -> QRCodeResponse:
    """Désactivation explicite par l'enseignant assigné à la section du code."""
    qr_code = db.get(QRCode, qr_code_id)
    if qr_code is None:
        raise NotFoundError(f"QR code {qr_code_id} introuvable.")
    class_session = db.get(ClassSession, qr_code.session_id)
    if class_session is None:
        raise NotFoundError(f"Session {qr_code.session_id} introuvable.")
    require_section_teacher(db, class_session.section_id, teacher_id)

    qr_code.is_active = False
    db.commit()
    db.refresh(qr_code)

    logger.info("QR code %s désactivé par l'enseignant %s", qr_code_id, teacher_id)
    return QRCodeResponse.model_validate(qr_code)


def sweep_expired_qr_codes(db: Session, clock: Optional[Clock] = None) -> int:
    """
    Désactive tous les codes encore actifs après leur expiration.
    Retourne le nombre de codes désactivés (0 s'il n'y a rien à faire).
    """
    clock = clock or get_clock()
    result = db.execute(
        update(QRCode)
        .where(QRCode.is_active.is_(True), QRCode.expires_at < clock.now())
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    count = result.rowcount or 0
    if count:
        logger.info("%d QR code(s) expiré(s) désactivé(s)", count)
    return count
