"""
Accès en lecture aux événements (le CRUD complet est hors de ce service).
"""

from typing import Optional

from sqlalchemy.orm import Session

from uniontrack.models.event import Event


def get_event(db: Session, event_id: int) -> Optional[Event]:
    """Retourne un événement par son ID, ou None si inexistant."""
    return db.get(Event, event_id)
