"""
Router de connexion par lien magique (chemin de développement, désactivé par défaut).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from uniontrack.database import get_db
from uniontrack.exceptions import CheckinError, as_http_error
from uniontrack.schemas.auth import MagicLinkRequest, MagicLinkResponse, MagicLinkVerify, MemberResponse
from uniontrack.services import auth_service
from uniontrack.services.login_token_store import DatabaseLoginTokenStore, LoginTokenStore

router = APIRouter(prefix="/api/v1/auth", tags=["Connexion"])


def get_login_token_store(db: Session = Depends(get_db)) -> LoginTokenStore:
    """Dépendance FastAPI — store persistant, remplaçable dans les tests."""
    return DatabaseLoginTokenStore(db)


@router.post("/magic-link", response_model=MagicLinkResponse, summary="Demander un lien de connexion")
def request_magic_link(
    data: MagicLinkRequest,
    db: Session = Depends(get_db),
    store: LoginTokenStore = Depends(get_login_token_store),
):
    """
    Envoie un lien de connexion à usage unique au membre.
    503 si le chemin de développement est désactivé, 404 si l'email est inconnu.
    """
    try:
        return auth_service.request_magic_link(db, store, data.email)
    except CheckinError as e:
        raise as_http_error(e)


@router.post("/verify", response_model=MemberResponse, summary="Valider un lien de connexion")
def verify_magic_link(
    data: MagicLinkVerify,
    db: Session = Depends(get_db),
    store: LoginTokenStore = Depends(get_login_token_store),
):
    """Consomme le jeton du lien (usage unique). 401 si invalide, expiré ou déjà utilisé."""
    try:
        return auth_service.verify_magic_link(db, store, data.email, data.token)
    except CheckinError as e:
        raise as_http_error(e)
