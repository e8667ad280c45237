"""
Schémas Pydantic pour l'émission et la présentation des jetons de check-in.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator


class CheckinTokenResponse(BaseModel):
    """Jeton émis pour un événement, avec son QR code (data URI PNG)."""

    token: str
    event_id: int
    expires_at: datetime
    expires_in_seconds: int
    qr_code: str


class CheckinRequest(BaseModel):
    """Corps de POST /events/{id}/checkin."""

    member_id: int
    token: str

    @field_validator("token")
    @classmethod
    def token_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le jeton de check-in ne peut pas être vide.")
        return v.strip()


class TokenInspectRequest(BaseModel):
    token: str


class TokenInspectResponse(BaseModel):
    """Expiration lue sans vérification de signature : affichage uniquement."""

    expires_at: Optional[datetime]
    expired: Optional[bool]


class TokenValidation(BaseModel):
    """Résultat non levant de la validation d'un jeton."""

    accepted: bool
    reason: Optional[str] = None  # BadSignature, Malformed, Expired, EventMismatch
    event_id: Optional[int] = None
    expires_at: Optional[datetime] = None


class AttendanceResponse(BaseModel):
    id: int
    member_id: int
    event_id: int
    checked_in_at: datetime

    model_config = {"from_attributes": True}


class EventAttendanceResponse(BaseModel):
    event_id: int
    attendance_count: int
    attendance: List[AttendanceResponse]


class AttendanceStatus(BaseModel):
    event_id: int
    member_id: int
    checked_in: bool


class IssuedToken(BaseModel):
    """Jeton fraîchement émis et sa fenêtre de validité."""

    token: str
    event_id: int
    issued_at: datetime
    expires_at: datetime


class CheckinClaims(BaseModel):
    """Contenu vérifié d'un jeton de check-in."""

    event_id: int
    issued_at: datetime
    expires_at: datetime
