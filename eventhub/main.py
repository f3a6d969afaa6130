"""
Point d'entrée du backend simulé EventHub.
Démarrage : uvicorn eventhub.main:app --reload
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventhub.mock_backend import MockBackendStore
from eventhub.routers import auth, client, enrollments, events, students

logger = logging.getLogger(__name__)


def create_app(store: Optional[MockBackendStore] = None) -> FastAPI:
    """Construit l'application ; chaque appel possède son propre état en mémoire."""
    app = FastAPI(
        title="EventHub API (simulée)",
        description="Backend REST en mémoire pour le tableau de bord d'administration des événements",
        version="0.1.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    app.state.store = store if store is not None else MockBackendStore()

    # CORS : tous les ports localhost en développement
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[],
        allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["Content-Type", "Authorization", "Accept"],
    )

    app.include_router(auth.router)
    app.include_router(events.router)
    app.include_router(students.router)
    app.include_router(enrollments.router)
    app.include_router(client.router)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Les erreurs non gérées repassent par CORSMiddleware avec un corps JSON."""
        logger.error("Exception non gérée : %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Une erreur interne est survenue."},
        )

    @app.get("/api/health", tags=["Santé"])
    def health_check():
        """Vérifie que l'API est opérationnelle."""
        return {"status": "ok", "service": "EventHub API", "version": "0.1.0"}

    return app


app = create_app()
