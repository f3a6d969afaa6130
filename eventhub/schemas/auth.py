"""
Schémas Pydantic pour l'authentification.
Endpoints : POST /auth/login (form-encoded), POST /auth/refresh (JSON)
"""

from typing import List, Optional

from pydantic import BaseModel, field_validator


class AuthUserPayload(BaseModel):
    """Utilisateur renvoyé par le backend dans la réponse de login."""
    id: int
    name: str = ""
    email: Optional[str] = None
    role: Optional[str] = None
    roles: List[str] = []

    def effective_role(self) -> str:
        """Rôle normalisé : `role`, sinon le premier de `roles`, en minuscules."""
        raw = self.role or (self.roles[0] if self.roles else "")
        return raw.strip().lower()


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: AuthUserPayload

    @field_validator("access_token", "refresh_token")
    @classmethod
    def token_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Jeton vide dans la réponse de login.")
        return v


class RefreshRequest(BaseModel):
    refresh_token: str


class RefreshResponse(BaseModel):
    """Un refresh sans nouveau refresh_token conserve l'ancien."""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"

    @field_validator("access_token")
    @classmethod
    def access_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("access_token manquant.")
        return v


class AuthUser(BaseModel):
    """Utilisateur connecté tel que conservé par la session."""
    username: str
    tenant: str
    role: str
    name: Optional[str] = None
    email: Optional[str] = None


class StoredSession(BaseModel):
    """Contenu persistant de la session (jetons + utilisateur)."""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[AuthUser] = None
