"""
Erreurs métier du check-in par jeton.

Chaque erreur porte un `code` stable (renvoyé au client) et le statut HTTP
que les routers doivent utiliser. Les rejets de jeton proviennent d'une
entrée non fiable : ce ne sont jamais des erreurs serveur.
"""

from typing import Optional

from fastapi import HTTPException


class CheckinError(Exception):
    code = "CheckinError"
    status_code = 500
    default_message = "Erreur de check-in."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


# --- Émission ---

class InvalidDuration(CheckinError, ValueError):
    code = "InvalidDuration"
    status_code = 400
    default_message = "La durée de validité doit être un nombre strictement positif."


class EncodingError(CheckinError):
    code = "EncodingError"
    status_code = 500
    default_message = "Impossible de générer le QR code."


class SigningKeyMissing(RuntimeError):
    """Aucune clé de signature configurée alors que ENV=production."""


# --- Validation (entrée non fiable) ---

class TokenRejected(CheckinError):
    code = "TokenRejected"
    status_code = 400
    default_message = "Jeton de check-in refusé."


class BadSignature(TokenRejected):
    code = "BadSignature"
    default_message = "Signature du jeton invalide."


class Malformed(TokenRejected):
    code = "Malformed"
    default_message = "Jeton de check-in mal formé."


class Expired(TokenRejected):
    code = "Expired"
    default_message = "Le jeton de check-in a expiré."


class EventMismatch(TokenRejected):
    code = "EventMismatch"
    default_message = "Le jeton ne correspond pas à cet événement."


# --- Registre des présences ---

class AlreadyCheckedIn(CheckinError):
    code = "AlreadyCheckedIn"
    status_code = 409
    default_message = "Ce membre est déjà enregistré pour cet événement."


class StorageError(CheckinError):
    code = "StorageError"
    status_code = 503
    default_message = "Registre des présences indisponible, réessayez plus tard."


# --- Collaborateurs ---

class EventNotFound(CheckinError):
    code = "EventNotFound"
    status_code = 404
    default_message = "Événement introuvable."


class MemberNotFound(CheckinError):
    code = "MemberNotFound"
    status_code = 404
    default_message = "Membre introuvable."


# --- Connexion par lien magique ---

class LoginUnavailable(CheckinError):
    code = "LoginUnavailable"
    status_code = 503
    default_message = "La connexion par lien de développement est désactivée."


class InvalidLoginToken(CheckinError):
    code = "InvalidLoginToken"
    status_code = 401
    default_message = "Lien de connexion invalide ou expiré."


def as_http_error(exc: CheckinError) -> HTTPException:
    """Traduit une erreur métier en réponse HTTP {code, message}."""
    return HTTPException(
        status_code=exc.status_code,
        detail={"code": exc.code, "message": str(exc)},
    )
