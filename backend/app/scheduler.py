"""
Tâche APScheduler qui désactive les QR codes de présence expirés.

Tourne toutes les QR_SWEEP_INTERVAL_SECONDS. Un passage en échec est journalisé
et simplement retenté au tick suivant : la vérification contrôle elle-même
l'expiration, un passage manqué ne laisse donc jamais passer un code expiré.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import settings
from app.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _sweep_expired_qr_codes() -> None:
    """
    Tâche planifiée : un passage de purge dans sa propre session BDD.
    Import local pour éviter les imports circulaires.
    """
    from app.services.qr_code_service import sweep_expired_qr_codes

    db = SessionLocal()
    try:
        count = sweep_expired_qr_codes(db)
        logger.debug("Purge terminée : %d QR code(s) désactivé(s)", count)
    except Exception as exc:
        db.rollback()
        logger.error("Erreur lors de la désactivation des QR codes expirés : %s", exc)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    scheduler.add_job(
        _sweep_expired_qr_codes,
        trigger="interval",
        seconds=settings.QR_SWEEP_INTERVAL_SECONDS,
        id="qr_code_expiry_sweep",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré : purge des QR codes expirés toutes les %ds.", settings.QR_SWEEP_INTERVAL_SECONDS
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
