"""
Configuration de la connexion à la base de données PostgreSQL.

Le registre des présences s'appuie sur la contrainte d'unicité de la base :
toutes les opérations doivent donc avoir un délai borné (DB_TIMEOUT_SECONDS).
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from uniontrack.config import settings


def _connect_args(database_url: str) -> dict:
    """Délais côté pilote : uniquement pour PostgreSQL (psycopg2)."""
    if not database_url.startswith("postgresql"):
        return {}
    timeout_ms = settings.DB_TIMEOUT_SECONDS * 1000
    return {
        "connect_timeout": settings.DB_TIMEOUT_SECONDS,
        "options": f"-c statement_timeout={timeout_ms} -c lock_timeout={timeout_ms}",
    }


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_timeout=settings.DB_TIMEOUT_SECONDS,
    connect_args=_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI — fournit une session BDD et la ferme après usage."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
