"""
Backend REST simulé, en mémoire, pour le développement local et les tests.

Reproduit les endpoints consommés par le tableau de bord (auth, événements et
jours, étudiants, inscriptions, client). L'état est volontairement simple :
des dictionnaires de dictionnaires, indexés par identifiant entier.
"""

import copy
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends, Header, HTTPException, Request

logger = logging.getLogger(__name__)

DEFAULT_STATE: Dict[str, Any] = {
    "users": [
        {"id": 1, "name": "Administrateur", "email": "admin@demo.com", "password": "admin123", "role": "admin"},
        {"id": 2, "name": "Cliente Demo", "email": "cliente@demo.com", "password": "cliente123", "roles": ["CLIENTE"]},
        {"id": 3, "name": "Porteiro", "email": "porteiro@demo.com", "password": "porteiro123", "role": "gatekeeper"},
    ],
    "client": {
        "id": 1,
        "name": "Instituto Demo",
        "cnpj": "11222333000181",
        "slug": "demo",
        "contact_email": "contato@demo.com",
        "default_min_presence_pct": 75,
    },
    "events": [],
    "days": [],
    "students": [],
    "enrollments": [],
}


class MockBackendStore:
    """État du backend simulé. reset() restaure l'état initial."""

    def __init__(self, initial_state: Optional[Dict[str, Any]] = None):
        self._initial = copy.deepcopy(initial_state if initial_state is not None else DEFAULT_STATE)
        self.reset()

    def reset(self) -> None:
        state = copy.deepcopy(self._initial)
        self.users: Dict[str, Dict[str, Any]] = {u["email"]: u for u in state.get("users", [])}
        self.client: Optional[Dict[str, Any]] = state.get("client")
        self.events: Dict[int, Dict[str, Any]] = {e["id"]: e for e in state.get("events", [])}
        self.days: Dict[int, Dict[str, Any]] = {d["id"]: d for d in state.get("days", [])}
        self.students: Dict[int, Dict[str, Any]] = {s["id"]: s for s in state.get("students", [])}
        self.enrollments: Dict[int, Dict[str, Any]] = {e["id"]: e for e in state.get("enrollments", [])}

        self._counters = {
            "events": max(self.events, default=0),
            "days": max(self.days, default=0),
            "students": max(self.students, default=0),
            "enrollments": max(self.enrollments, default=0),
        }
        self.access_tokens: Dict[str, str] = {}
        self.refresh_tokens: Dict[str, str] = {}
        self.refresh_calls = 0

    def next_id(self, kind: str) -> int:
        self._counters[kind] += 1
        return self._counters[kind]

    @property
    def client_id(self) -> int:
        return self.client["id"] if self.client else 1

    # --- Jetons ---

    def authenticate(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        user = self.users.get(email)
        if user is None or user.get("password") != password:
            return None
        return user

    def issue_tokens(self, email: str) -> Tuple[str, str]:
        access, refresh = secrets.token_hex(16), secrets.token_hex(16)
        self.access_tokens[access] = email
        self.refresh_tokens[refresh] = email
        return access, refresh

    def refresh(self, refresh_token: str) -> Optional[Tuple[str, str]]:
        """Rotation : le refresh token présenté est consommé, une nouvelle paire est émise."""
        self.refresh_calls += 1
        email = self.refresh_tokens.pop(refresh_token, None)
        if email is None:
            logger.info("Refresh refusé : jeton inconnu ou déjà consommé")
            return None
        return self.issue_tokens(email)

    def expire_access_tokens(self) -> None:
        self.access_tokens.clear()

    def revoke_refresh_tokens(self) -> None:
        self.refresh_tokens.clear()

    def user_for_token(self, token: str) -> Optional[Dict[str, Any]]:
        email = self.access_tokens.get(token)
        return self.users.get(email) if email else None

    # --- Utilitaires ---

    @staticmethod
    def now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    def new_qr_code(self) -> str:
        taken = {e.get("qr_code") for e in self.enrollments.values()}
        while True:
            code = f"ENR-{secrets.token_hex(4).upper()}"
            if code not in taken:
                return code


# ============================================================
# Dépendances FastAPI
# ============================================================

def get_store(request: Request) -> MockBackendStore:
    return request.app.state.store


def current_user(
    authorization: Optional[str] = Header(default=None),
    store: MockBackendStore = Depends(get_store),
) -> Dict[str, Any]:
    """Exige « Authorization: Bearer <jeton> » valide, sinon 401."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Non authentifié.")
    user = store.user_for_token(authorization.split(" ", 1)[1].strip())
    if user is None:
        raise HTTPException(status_code=401, detail="Jeton expiré ou invalide.")
    return user
