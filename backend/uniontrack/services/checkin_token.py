"""
Émission et validation des jetons de check-in.

Un jeton est un JWT HS256 autoporteur : {eventId, iat, exp, scope}.
Aucun jeton émis n'est conservé côté serveur : n'importe quel réplica peut
émettre ou valider avec la même clé, mais un jeton ne peut pas être révoqué
avant son expiration.

Validation (arrêt au premier échec) :
  1. Signature            → BadSignature
  2. Structure des claims → Malformed
  3. Expiration           → Expired
  4. Événement attendu    → EventMismatch

iat / exp sont des NumericDate à la milliseconde (RFC 7519 autorise les
valeurs non entières) : un jeton est valide tant que iat <= now < exp.
"""

import base64
import hashlib
import io
import logging
import math
from datetime import datetime, timedelta, timezone
from numbers import Real
from typing import Optional, Union

import jwt
import qrcode
from qrcode.constants import ERROR_CORRECT_M
from qrcode.exceptions import DataOverflowError

from uniontrack.config import settings
from uniontrack.exceptions import (
    BadSignature,
    EncodingError,
    EventMismatch,
    Expired,
    InvalidDuration,
    Malformed,
    SigningKeyMissing,
    TokenRejected,
)
from uniontrack.schemas.checkin import CheckinClaims, IssuedToken, TokenValidation

logger = logging.getLogger(__name__)

TOKEN_SCOPE = "event-checkin"
DEV_FALLBACK_SECRET = "uniontrack-DEV-ONLY-insecure-signing-key"

Validity = Union[timedelta, int, float, None]


# ============================================================
# Clé de signature
# ============================================================

def get_signing_key() -> str:
    """
    Retourne la clé symétrique de signature (QR_CODE_SECRET, sinon SECRET_KEY).

    Sans clé configurée : SigningKeyMissing en production, clé de
    développement explicitement étiquetée sinon.
    """
    secret = settings.QR_CODE_SECRET or settings.SECRET_KEY
    if secret:
        return secret
    if settings.ENV == "production":
        raise SigningKeyMissing(
            "QR_CODE_SECRET ou SECRET_KEY doit être défini lorsque ENV=production."
        )
    return DEV_FALLBACK_SECRET


def check_signing_configuration() -> None:
    """Vérification au démarrage de l'API : échoue en production sans clé, signale la clé de dev."""
    if get_signing_key() == DEV_FALLBACK_SECRET:
        logger.warning(
            "Aucune clé de signature configurée (ENV=%s) : les jetons de check-in sont signés "
            "avec la clé de DÉVELOPPEMENT. Définir QR_CODE_SECRET avant tout déploiement.",
            settings.ENV,
        )


# ============================================================
# Horodatage
# ============================================================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> datetime:
    """Horloge injectée ramenée en UTC ; une date naïve est lue comme UTC."""
    if value is None:
        return _utcnow()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_numeric_date(value: datetime) -> float:
    return round(value.timestamp(), 3)


def _from_numeric_date(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _validity_seconds(validity: Validity) -> float:
    """Durée de validité en secondes, ou InvalidDuration si elle n'est pas strictement positive."""
    if validity is None:
        return settings.CHECKIN_TOKEN_TTL_HOURS * 3600
    if isinstance(validity, timedelta):
        seconds = validity.total_seconds()
    elif isinstance(validity, Real) and not isinstance(validity, bool):
        seconds = float(validity)
    else:
        raise InvalidDuration(f"Durée de validité non numérique : {validity!r}.")
    if not math.isfinite(seconds) or seconds <= 0:
        raise InvalidDuration()
    return seconds


def duration_from_hours(raw: Optional[str]) -> Optional[timedelta]:
    """
    Convertit le paramètre de requête ttl_hours en durée.
    Vide ou absent → None (durée par défaut). Lève InvalidDuration sinon.
    """
    if raw is None or not str(raw).strip():
        return None
    try:
        hours = float(raw)
    except (TypeError, ValueError):
        raise InvalidDuration(f"Paramètre ttl_hours invalide : {raw!r}.")
    if not math.isfinite(hours) or hours <= 0:
        raise InvalidDuration(f"Paramètre ttl_hours invalide : {raw!r}.")
    try:
        return timedelta(hours=hours)
    except OverflowError:
        raise InvalidDuration("Durée de validité trop grande.")


# ============================================================
# Émission
# ============================================================

def issue_token(
    event_id: int,
    validity: Validity = None,
    *,
    secret: Optional[str] = None,
    now: Optional[datetime] = None,
) -> IssuedToken:
    """
    Émet un jeton signé autorisant le check-in à `event_id`.

    Aucune vérification d'existence de l'événement ici : l'appelant s'en charge.
    La signature couvre eventId, iat et exp. Granularité minimale : 1 ms.
    """
    seconds = _validity_seconds(validity)
    issued_at = _to_numeric_date(_as_utc(now))
    expires_at = round(issued_at + max(round(seconds, 3), 0.001), 3)
    try:
        expires_at_dt = _from_numeric_date(expires_at)
    except (OverflowError, ValueError, OSError):
        raise InvalidDuration("Durée de validité trop grande.")

    payload = {
        "eventId": int(event_id),
        "iat": issued_at,
        "exp": expires_at,
        "scope": TOKEN_SCOPE,
    }
    token = jwt.encode(payload, secret or get_signing_key(), algorithm=settings.ALGORITHM)

    logger.info("Jeton de check-in émis pour l'événement %s (expire le %s)", event_id, expires_at_dt.isoformat())
    return IssuedToken(
        token=token,
        event_id=int(event_id),
        issued_at=_from_numeric_date(issued_at),
        expires_at=expires_at_dt,
    )


def credential_fingerprint(token: str) -> str:
    """Référence stockée dans le registre : SHA-256 du jeton, jamais le jeton lui-même."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# ============================================================
# Rendu QR code
# ============================================================

def _make_qr_image(token: str):
    if not isinstance(token, str) or not token:
        raise EncodingError("Impossible d'encoder un jeton vide.")
    qr = qrcode.QRCode(version=None, error_correction=ERROR_CORRECT_M, box_size=10, border=1)
    try:
        qr.add_data(token)
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as exc:
        raise EncodingError(f"Impossible de générer le QR code : {exc}") from exc
    return qr.make_image(fill_color="black", back_color="white")


def render_qr_png(token: str) -> bytes:
    """Génère une image PNG du QR code encodant le jeton donné."""
    img = _make_qr_image(token)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_qr_data_uri(token: str) -> str:
    """Même image, en data URI (intégration directe dans une page HTML)."""
    return "data:image/png;base64," + base64.b64encode(render_qr_png(token)).decode("ascii")


# ============================================================
# Lecture et validation
# ============================================================

def peek_expiry(token: str) -> Optional[datetime]:
    """
    Lit l'expiration SANS vérifier la signature, pour affichage uniquement.
    Ne lève jamais : None si le jeton est illisible ou sans exp numérique.
    """
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return None
        return _from_numeric_date(float(exp))
    except (jwt.InvalidTokenError, OverflowError, ValueError, OSError):
        return None


def _numeric_claim(payload: dict, name: str) -> float:
    value = payload.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise Malformed(f"Claim '{name}' absent ou invalide.")
    return float(value)


def _parse_claims(payload: dict) -> CheckinClaims:
    if payload.get("scope") != TOKEN_SCOPE:
        raise Malformed("Le jeton n'est pas un jeton de check-in.")
    event_id = payload.get("eventId")
    if isinstance(event_id, bool) or not isinstance(event_id, int):
        raise Malformed("Claim 'eventId' absent ou invalide.")
    issued_at = _numeric_claim(payload, "iat")
    expires_at = _numeric_claim(payload, "exp")
    if expires_at <= issued_at:
        raise Malformed("Fenêtre de validité incohérente (exp <= iat).")
    try:
        return CheckinClaims(
            event_id=event_id,
            issued_at=_from_numeric_date(issued_at),
            expires_at=_from_numeric_date(expires_at),
        )
    except (OverflowError, ValueError, OSError):
        raise Malformed("Horodatage hors limites.")


def verify_token(
    token: str,
    expected_event_id: Optional[int] = None,
    *,
    secret: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CheckinClaims:
    """
    Vérifie un jeton présenté et retourne ses claims.
    Lève la sous-classe de TokenRejected correspondant au premier contrôle en échec.
    """
    try:
        payload = jwt.decode(
            token,
            secret or get_signing_key(),
            algorithms=[settings.ALGORITHM],
            # exp / iat sont contrôlés ici, à la milliseconde
            options={"verify_exp": False, "verify_iat": False, "verify_nbf": False},
        )
    except jwt.InvalidSignatureError:
        raise BadSignature()
    except jwt.InvalidAlgorithmError:
        raise BadSignature("Algorithme de signature non accepté.")
    except jwt.InvalidTokenError:
        raise Malformed()

    claims = _parse_claims(payload)

    if _as_utc(now) >= claims.expires_at:
        raise Expired()

    if expected_event_id is not None and claims.event_id != int(expected_event_id):
        raise EventMismatch()

    return claims


def validate_token(
    token: str,
    expected_event_id: Optional[int] = None,
    *,
    secret: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TokenValidation:
    """
    Forme non levante de verify_token : {accepted, reason}.
    Sans état et idempotente : n'impose pas l'usage unique.
    """
    try:
        claims = verify_token(token, expected_event_id, secret=secret, now=now)
    except TokenRejected as exc:
        return TokenValidation(accepted=False, reason=exc.code)
    return TokenValidation(accepted=True, event_id=claims.event_id, expires_at=claims.expires_at)
