"""
Modèle SQLAlchemy pour les membres.
Version minimale : le CRUD complet des membres vit en dehors de ce service.
"""

from sqlalchemy import Column, DateTime, Integer, String, func

from uniontrack.database import Base


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    membership_status = Column(String(20), default="active")  # active, inactive, suspended
    created_at = Column(DateTime, server_default=func.now())
