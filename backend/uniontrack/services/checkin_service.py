"""
Check-in d'un membre à un événement par jeton signé.

Flux :
  1. Vérifier que l'événement puis le membre existent (404 sinon)
  2. Valider le jeton pour CET événement (signature, structure, expiration, événement)
  3. Insérer la présence dans le registre : la contrainte d'unicité tranche
     entre deux tentatives concurrentes (AlreadyCheckedIn pour la perdante)
  4. Envoyer la confirmation par email (non bloquant)

Aucune étape n'est rejouée automatiquement : le client représente un jeton
(éventuellement nouveau) pour réessayer.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from uniontrack.exceptions import AlreadyCheckedIn, EventNotFound, MemberNotFound, TokenRejected
from uniontrack.schemas.checkin import AttendanceResponse
from uniontrack.services import attendance_ledger, email_service
from uniontrack.services.checkin_token import credential_fingerprint, verify_token
from uniontrack.services.event_service import get_event
from uniontrack.services.member_service import get_member

logger = logging.getLogger(__name__)


def check_in_member(
    db: Session,
    event_id: int,
    member_id: int,
    token: str,
    now: Optional[datetime] = None,
) -> AttendanceResponse:
    """
    Enregistre la présence du membre si le jeton l'autorise.

    Lève EventNotFound / MemberNotFound, une sous-classe de TokenRejected,
    AlreadyCheckedIn ou StorageError.
    """
    event = get_event(db, event_id)
    if event is None:
        raise EventNotFound()
    member = get_member(db, member_id)
    if member is None:
        raise MemberNotFound()

    try:
        verify_token(token, expected_event_id=event_id, now=now)
    except TokenRejected as exc:
        # Seul le type d'échec est journalisé, jamais le contenu du jeton
        logger.info("Check-in refusé (événement %s, membre %s) : %s", event_id, member_id, exc.code)
        raise

    checked_in_at = now or datetime.now(timezone.utc)
    attendance = attendance_ledger.insert_if_absent(
        db,
        member_id=member_id,
        event_id=event_id,
        checked_in_at=checked_in_at,
        credential_ref=credential_fingerprint(token),
    )
    if attendance is None:
        logger.info("Check-in en double ignoré (événement %s, membre %s)", event_id, member_id)
        raise AlreadyCheckedIn()

    logger.info("Présence enregistrée : membre %s, événement %s", member_id, event_id)

    # La confirmation ne doit jamais faire échouer un check-in déjà enregistré
    try:
        email_service.send_checkin_confirmation(
            to_email=member.email,
            member_name=member.name,
            event_title=event.title,
            checked_in_at=checked_in_at,
        )
    except Exception as exc:
        logger.error("Échec de l'email de confirmation pour le membre %s : %s", member_id, exc)

    return AttendanceResponse.model_validate(attendance)


def is_checked_in(db: Session, event_id: int, member_id: int) -> bool:
    """Lecture du registre. Lève EventNotFound si l'événement n'existe pas."""
    if get_event(db, event_id) is None:
        raise EventNotFound()
    return attendance_ledger.exists(db, member_id, event_id)


def get_event_attendance(db: Session, event_id: int) -> list:
    """Présences enregistrées pour un événement. Lève EventNotFound si inexistant."""
    if get_event(db, event_id) is None:
        raise EventNotFound()
    return [AttendanceResponse.model_validate(a) for a in attendance_ledger.list_for_event(db, event_id)]
