"""
Tests unitaires pour la tâche planifiée de purge des QR codes expirés.
"""

from unittest.mock import MagicMock, patch

from app import scheduler


def test_purge_ferme_la_session():
    db = MagicMock()
    with patch("app.scheduler.SessionLocal", return_value=db), \
            patch("app.services.qr_code_service.sweep_expired_qr_codes", return_value=2) as sweep:
        scheduler._sweep_expired_qr_codes()

    sweep.assert_called_once_with(db)
    db.close.assert_called_once()


def test_purge_en_echec_journalisee_et_rollback(caplog):
    db = MagicMock()
    with patch("app.scheduler.SessionLocal", return_value=db), \
            patch("app.services.qr_code_service.sweep_expired_qr_codes", side_effect=RuntimeError("db down")):
        scheduler._sweep_expired_qr_codes()

    db.rollback.assert_called_once()
    db.close.assert_called_once()
    assert "db down" in caplog.text


def test_start_scheduler_enregistre_job_intervalle():
    with patch.object(scheduler, "scheduler") as mock_scheduler:
        scheduler.start_scheduler()

    kwargs = mock_scheduler.add_job.call_args.kwargs
    assert kwargs["trigger"] == "interval"
    assert kwargs["id"] == "qr_code_expiry_sweep"
    mock_scheduler.start.assert_called_once()
