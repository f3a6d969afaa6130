"""
Router d'authentification du backend simulé.
POST /auth/login (form-encoded) et POST /auth/refresh (JSON).
"""

import logging

from fastapi import APIRouter, Depends, Form, HTTPException

from eventhub.mock_backend import MockBackendStore, get_store
from eventhub.schemas.auth import LoginResponse, RefreshRequest, RefreshResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/{tenant}/auth", tags=["Authentification"])


@router.post("/login", response_model=LoginResponse, summary="Connexion")
def login(
    username: str = Form(...),
    password: str = Form(...),
    store: MockBackendStore = Depends(get_store),
):
    user = store.authenticate(username, password)
    if user is None:
        raise HTTPException(status_code=401, detail="Identifiants invalides.")

    access, refresh = store.issue_tokens(user["email"])
    return {
        "access_token": access,
        "refresh_token": refresh,
        "token_type": "bearer",
        "user": {k: v for k, v in user.items() if k != "password"},
    }


@router.post("/refresh", response_model=RefreshResponse, summary="Renouveler le jeton d'accès")
def refresh(data: RefreshRequest, store: MockBackendStore = Depends(get_store)):
    """Rotation : l'ancien refresh token est invalidé et une nouvelle paire est renvoyée."""
    tokens = store.refresh(data.refresh_token)
    if tokens is None:
        raise HTTPException(status_code=401, detail="Refresh token invalide.")
    logger.debug("Jetons renouvelés (appel n°%d)", store.refresh_calls)
    access, refresh_token = tokens
    return {"access_token": access, "refresh_token": refresh_token, "token_type": "bearer"}
