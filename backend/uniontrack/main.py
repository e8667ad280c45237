"""
Point d'entrée principal de l'API UnionTrack.
Démarrage : uvicorn uniontrack.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import uniontrack.models  # noqa: F401 — enregistre tous les modèles dans Base.metadata avant les routers
from uniontrack.routers import auth, events
from uniontrack.scheduler import start_scheduler, stop_scheduler
from uniontrack.services.checkin_token import check_signing_configuration

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Cycle de vie de l'application.
    Refuse de démarrer en production sans clé de signature, puis gère le scheduler.
    """
    check_signing_configuration()
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="UnionTrack API",
    description="API de gestion des membres et du check-in aux événements par QR code",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS : seules les origines localhost (tout port) sont acceptées, via allow_origin_regex.
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(events.router)
app.include_router(events.tokens_router)
app.include_router(auth.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "UnionTrack API", "version": "0.1.0"}
