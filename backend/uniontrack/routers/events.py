"""
Router du check-in par jeton : émission (JSON ou image PNG), check-in,
consultation du registre des présences.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from uniontrack.database import get_db
from uniontrack.exceptions import CheckinError, EventNotFound, as_http_error
from uniontrack.schemas.checkin import (
    AttendanceResponse,
    AttendanceStatus,
    CheckinRequest,
    CheckinTokenResponse,
    EventAttendanceResponse,
    TokenInspectRequest,
    TokenInspectResponse,
)
from uniontrack.services import checkin_service, checkin_token
from uniontrack.services.event_service import get_event

router = APIRouter(prefix="/api/v1/events", tags=["Check-in"])
tokens_router = APIRouter(prefix="/api/v1/checkin", tags=["Check-in"])


def _issue_for_event(db: Session, event_id: int, ttl_hours: Optional[str]):
    if get_event(db, event_id) is None:
        raise EventNotFound()
    validity = checkin_token.duration_from_hours(ttl_hours)
    return checkin_token.issue_token(event_id, validity)


@router.post(
    "/{event_id}/checkin/token",
    response_model=CheckinTokenResponse,
    status_code=201,
    summary="Émettre un jeton de check-in",
)
def create_checkin_token(
    event_id: int,
    ttl_hours: Optional[str] = Query(None, description="Durée de validité en heures (défaut : 2)"),
    db: Session = Depends(get_db),
):
    """
    Émet un jeton signé autorisant le check-in à cet événement, avec son QR code.

    Retourne 404 si l'événement est introuvable, 400 si ttl_hours n'est pas
    un nombre strictement positif.
    """
    try:
        issued = _issue_for_event(db, event_id, ttl_hours)
        qr_code = checkin_token.render_qr_data_uri(issued.token)
    except CheckinError as e:
        raise as_http_error(e)

    expires_in = issued.expires_at - issued.issued_at
    return CheckinTokenResponse(
        token=issued.token,
        event_id=issued.event_id,
        expires_at=issued.expires_at,
        expires_in_seconds=int(expires_in.total_seconds()),
        qr_code=qr_code,
    )


@router.get(
    "/{event_id}/checkin/token/image",
    summary="QR code de check-in (PNG)",
    response_class=Response,
)
def get_checkin_token_image(
    event_id: int,
    ttl_hours: Optional[str] = Query(None, description="Durée de validité en heures (défaut : 2)"),
    db: Session = Depends(get_db),
):
    """Émet un nouveau jeton et le renvoie directement sous forme d'image PNG."""
    try:
        issued = _issue_for_event(db, event_id, ttl_hours)
        png = checkin_token.render_qr_png(issued.token)
    except CheckinError as e:
        raise as_http_error(e)

    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="checkin-event-{event_id}.png"'},
    )


@router.post(
    "/{event_id}/checkin",
    response_model=AttendanceResponse,
    status_code=201,
    summary="Check-in d'un membre",
)
def check_in(event_id: int, data: CheckinRequest, db: Session = Depends(get_db)):
    """
    Valide le jeton présenté et enregistre la présence du membre (une seule fois).

    - 404 : événement ou membre introuvable
    - 400 : jeton refusé (BadSignature, Malformed, Expired, EventMismatch)
    - 409 : membre déjà enregistré (AlreadyCheckedIn)
    - 503 : registre indisponible (StorageError), le client peut réessayer
    """
    try:
        return checkin_service.check_in_member(db, event_id, data.member_id, data.token)
    except CheckinError as e:
        raise as_http_error(e)


@router.get(
    "/{event_id}/attendance",
    response_model=EventAttendanceResponse,
    summary="Présences d'un événement",
)
def get_event_attendance(event_id: int, db: Session = Depends(get_db)):
    """Liste des présences enregistrées, de la plus ancienne à la plus récente."""
    try:
        attendance = checkin_service.get_event_attendance(db, event_id)
    except CheckinError as e:
        raise as_http_error(e)
    return EventAttendanceResponse(
        event_id=event_id,
        attendance_count=len(attendance),
        attendance=attendance,
    )


@router.get(
    "/{event_id}/attendance/{member_id}",
    response_model=AttendanceStatus,
    summary="Statut de check-in d'un membre",
)
def get_attendance_status(event_id: int, member_id: int, db: Session = Depends(get_db)):
    """Indique si le membre est déjà enregistré pour l'événement."""
    try:
        checked_in = checkin_service.is_checked_in(db, event_id, member_id)
    except CheckinError as e:
        raise as_http_error(e)
    return AttendanceStatus(event_id=event_id, member_id=member_id, checked_in=checked_in)


@tokens_router.post(
    "/token/inspect",
    response_model=TokenInspectResponse,
    summary="Lire l'expiration d'un jeton (affichage)",
)
def inspect_token(data: TokenInspectRequest):
    """
    Lit l'expiration d'un jeton sans vérifier sa signature.
    Pour affichage uniquement : ne constitue jamais une autorisation.
    """
    expires_at = checkin_token.peek_expiry(data.token)
    if expires_at is None:
        return TokenInspectResponse(expires_at=None, expired=None)
    return TokenInspectResponse(
        expires_at=expires_at,
        expired=expires_at <= datetime.now(timezone.utc),
    )
