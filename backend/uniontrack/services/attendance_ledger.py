"""
Registre des présences : insertion atomique au plus une fois par (membre, événement).

Aucune vérification préalable avant insertion : la contrainte
uq_attendance_member_event est le seul point de linéarisation, y compris
entre plusieurs réplicas. Perdre la course se traduit par une IntegrityError,
qui est ici un résultat attendu (conflit), pas une erreur.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from uniontrack.exceptions import StorageError
from uniontrack.models.attendance import Attendance

logger = logging.getLogger(__name__)


def insert_if_absent(
    db: Session,
    member_id: int,
    event_id: int,
    checked_in_at: datetime,
    credential_ref: Optional[str],
) -> Optional[Attendance]:
    """
    Insère la présence et la retourne, ou None si elle existe déjà.

    Lève StorageError pour toute autre défaillance (indisponibilité, délai
    dépassé, clé étrangère invalide). Aucune nouvelle tentative automatique.
    """
    attendance = Attendance(
        member_id=member_id,
        event_id=event_id,
        checked_in_at=checked_in_at,
        credential_ref=credential_ref,
    )
    db.add(attendance)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # Distinguer le doublon (attendu) d'une autre violation de contrainte
        if exists(db, member_id, event_id):
            return None
        logger.error(
            "Violation de contrainte inattendue pour le membre %s / événement %s", member_id, event_id
        )
        raise StorageError("Enregistrement de la présence refusé par la base de données.")
    except OperationalError as exc:
        db.rollback()
        logger.error("Registre des présences indisponible ou délai dépassé : %s", exc.__class__.__name__)
        raise StorageError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Erreur du registre des présences : %s", exc.__class__.__name__)
        raise StorageError() from exc

    try:
        db.refresh(attendance)
    except SQLAlchemyError as exc:
        # La ligne est validée : le check-in reste enregistré, seule la relecture a échoué
        db.rollback()
        logger.warning(
            "Présence enregistrée mais relecture impossible (membre %s / événement %s) : %s",
            member_id, event_id, exc.__class__.__name__,
        )
        identity = inspect(attendance).identity
        return Attendance(
            id=identity[0] if identity else None,
            member_id=member_id,
            event_id=event_id,
            checked_in_at=checked_in_at,
            credential_ref=credential_ref,
        )

    return attendance


def exists(db: Session, member_id: int, event_id: int) -> bool:
    """Indique si le membre est déjà enregistré pour l'événement."""
    try:
        found = db.execute(
            select(Attendance.id).where(
                Attendance.member_id == member_id,
                Attendance.event_id == event_id,
            )
        ).scalar()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError() from exc
    return found is not None


def list_for_event(db: Session, event_id: int) -> List[Attendance]:
    """Présences d'un événement, de la plus ancienne à la plus récente."""
    try:
        return db.execute(
            select(Attendance)
            .where(Attendance.event_id == event_id)
            .order_by(Attendance.checked_in_at)
        ).scalars().all()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError() from exc
