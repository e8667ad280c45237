"""
Connexion par lien magique : chemin de DÉVELOPPEMENT uniquement.

Ce chemin ne passe par aucun fournisseur d'identité. Il n'est disponible que
si DEV_LOGIN_ENABLED=true ET ENV != production ; il n'est jamais déduit
d'une configuration partielle. Aucune session n'est créée ici.
"""

import hashlib
import logging
import secrets
from datetime import timedelta
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from uniontrack.config import settings
from uniontrack.exceptions import InvalidLoginToken, LoginUnavailable, MemberNotFound
from uniontrack.schemas.auth import MagicLinkResponse, MemberResponse
from uniontrack.services import email_service
from uniontrack.services.login_token_store import LoginTokenStore
from uniontrack.services.member_service import get_member_by_email

logger = logging.getLogger(__name__)


def dev_login_enabled() -> bool:
    return settings.DEV_LOGIN_ENABLED and settings.ENV != "production"


def _require_dev_login() -> None:
    if not dev_login_enabled():
        raise LoginUnavailable()


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def request_magic_link(db: Session, store: LoginTokenStore, email: str) -> MagicLinkResponse:
    """
    Génère un lien de connexion à usage unique et l'envoie par email.
    Lève LoginUnavailable si le chemin est désactivé, MemberNotFound si l'email est inconnu.
    """
    _require_dev_login()
    member = get_member_by_email(db, email)
    if member is None:
        raise MemberNotFound("Aucun membre avec cet email.")

    token = secrets.token_urlsafe(32)
    ttl = timedelta(minutes=settings.LOGIN_TOKEN_TTL_MINUTES)
    store.put(_hash_token(token), member.email, ttl)

    link = f"{settings.FRONTEND_URL}/verify?" + urlencode({"token": token, "email": member.email})
    logger.warning("Lien de connexion de développement généré pour le membre %s", member.id)

    # Envoi non bloquant : le lien reste utilisable depuis la réponse
    try:
        email_service.send_magic_link_email(
            to_email=member.email,
            member_name=member.name,
            link=link,
            expires_in_minutes=settings.LOGIN_TOKEN_TTL_MINUTES,
        )
    except Exception as exc:
        logger.error("Échec de l'envoi du lien de connexion à %s : %s", member.email, exc)

    return MagicLinkResponse(
        message="Lien de connexion envoyé.",
        expires_in_seconds=int(ttl.total_seconds()),
        dev_link=link,
    )


def verify_magic_link(db: Session, store: LoginTokenStore, email: str, token: str) -> MemberResponse:
    """
    Consomme le jeton (usage unique) et retourne le membre correspondant.
    Lève InvalidLoginToken si le jeton est inconnu, expiré, déjà utilisé ou lié à un autre email.
    """
    _require_dev_login()
    stored_email = store.take_once(_hash_token(token))
    if stored_email is None or stored_email.lower() != email.strip().lower():
        raise InvalidLoginToken()

    member = get_member_by_email(db, stored_email)
    if member is None:
        raise InvalidLoginToken()
    logger.info("Connexion de développement réussie pour le membre %s", member.id)
    return MemberResponse.model_validate(member)
