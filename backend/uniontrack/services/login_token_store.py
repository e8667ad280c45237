"""
Stockage des jetons de connexion éphémères (lien magique).

Remplace tout état global en mémoire de processus : le store est injecté,
et l'implémentation base de données fonctionne entre redémarrages et
réplicas. take_once est atomique : un jeton ne peut être consommé qu'une fois.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from sqlalchemy import delete
from sqlalchemy.orm import Session

from uniontrack.models.login_token import LoginToken


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoginTokenStore(ABC):
    """Interface d'un store clé → valeur avec expiration et lecture unique."""

    @abstractmethod
    def put(self, key: str, value: str, ttl: timedelta) -> None:
        """Enregistre la valeur, consommable jusqu'à maintenant + ttl."""
        ...

    @abstractmethod
    def take_once(self, key: str) -> Optional[str]:
        """Retourne la valeur et la supprime ; None si absente ou expirée."""
        ...


class DatabaseLoginTokenStore(LoginTokenStore):
    """Implémentation persistante (table login_tokens)."""

    def __init__(self, db: Session):
        self.db = db

    def put(self, key: str, value: str, ttl: timedelta) -> None:
        self.db.merge(LoginToken(key=key, value=value, expires_at=_utcnow() + ttl))
        self.db.commit()

    def take_once(self, key: str) -> Optional[str]:
        # DELETE ... RETURNING en une seule instruction : deux lecteurs concurrents
        # ne peuvent pas obtenir la même valeur.
        value = self.db.execute(
            delete(LoginToken)
            .where(LoginToken.key == key, LoginToken.expires_at > _utcnow())
            .returning(LoginToken.value)
            .execution_options(synchronize_session=False)
        ).scalar()
        self.db.commit()
        return value

    def purge_expired(self) -> int:
        """Supprime les jetons expirés. Retourne le nombre de lignes supprimées."""
        result = self.db.execute(
            delete(LoginToken)
            .where(LoginToken.expires_at <= _utcnow())
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount


class MemoryLoginTokenStore(LoginTokenStore):
    """Implémentation en mémoire : tests et outillage mono-processus uniquement."""

    def __init__(self):
        self._items: Dict[str, Tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: str, ttl: timedelta) -> None:
        with self._lock:
            self._items[key] = (value, _utcnow() + ttl)

    def take_once(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._items.pop(key, None)
        if item is None:
            return None
        value, expires_at = item
        return value if _utcnow() < expires_at else None
