"""
Planificateur APScheduler : purge horaire des jetons de connexion expirés.

Le check-in lui-même n'a aucune tâche de fond : les jetons de check-in sont
autoporteurs et ne sont jamais stockés.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from uniontrack.database import SessionLocal
from uniontrack.services.login_token_store import DatabaseLoginTokenStore

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _purge_expired_login_tokens() -> None:
    """Tâche planifiée : supprime les jetons de lien magique expirés ou jamais utilisés."""
    db = SessionLocal()
    try:
        purged = DatabaseLoginTokenStore(db).purge_expired()
        if purged:
            logger.info("%d jeton(s) de connexion expiré(s) supprimé(s)", purged)
    except Exception as exc:
        logger.error("Erreur lors de la purge des jetons de connexion : %s", exc)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    scheduler.add_job(
        _purge_expired_login_tokens,
        trigger="interval",
        hours=1,
        id="login_tokens_purge",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler démarré — purge des jetons de connexion toutes les heures.")


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
