"""
Modèle SQLAlchemy pour les jetons de connexion éphémères (lien magique).
La clé est l'empreinte SHA-256 du jeton envoyé par email.
"""

from sqlalchemy import Column, DateTime, String

from uniontrack.database import Base


class LoginToken(Base):
    __tablename__ = "login_tokens"

    key = Column(String(64), primary_key=True)
    value = Column(String(255), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
