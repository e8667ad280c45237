"""
Modèle SQLAlchemy pour le registre des présences.

La contrainte uq_attendance_member_event est l'unique point de sérialisation
du check-in : au plus une ligne par (membre, événement), même entre réplicas.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from uniontrack.database import Base


class Attendance(Base):
    """Présence enregistrée par un check-in réussi. Jamais modifiée."""
    __tablename__ = "attendances"
    __table_args__ = (
        UniqueConstraint("member_id", "event_id", name="uq_attendance_member_event"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=False)
    credential_ref = Column(String(64), nullable=True)  # SHA-256 du jeton présenté, jamais le jeton brut
