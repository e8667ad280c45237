"""
Accès en lecture aux membres (le CRUD complet est hors de ce service).
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from uniontrack.models.member import Member


def get_member(db: Session, member_id: int) -> Optional[Member]:
    """Retourne un membre par son ID, ou None si inexistant."""
    return db.get(Member, member_id)


def get_member_by_email(db: Session, email: str) -> Optional[Member]:
    """Recherche insensible à la casse, utilisée par la connexion par lien magique."""
    return db.execute(
        select(Member).where(func.lower(Member.email) == email.strip().lower())
    ).scalar()
