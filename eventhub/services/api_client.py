"""
Client HTTP du backend REST (httpx, asynchrone).

- Toutes les requêtes portent « Authorization: Bearer <access_token> » si un jeton existe.
- Les corps sont en JSON, sauf le login (form-encoded).
- Un 401 hors endpoints /auth déclenche un rafraîchissement (dédupliqué par
  TokenRefreshCoordinator) puis rejoue la requête une seule fois.
- Les réponses sont validées à la frontière : une forme inattendue lève ApiError
  au lieu de se propager dans le tableau de bord.
"""

import logging
from typing import Any, Dict, Iterable, Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from eventhub.config import settings
from eventhub.exceptions import ApiError, AuthError, ConflictError, SessionExpiredError
from eventhub.schemas.auth import AuthUser, LoginResponse
from eventhub.services.session_store import SessionStore
from eventhub.services.token_refresh import TokenRefreshCoordinator

logger = logging.getLogger(__name__)

AUTH_PREFIX = "/auth"


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[SessionStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        allowed_roles: Optional[Iterable[str]] = None,
        tenant: Optional[str] = None,
    ):
        self.base_url = base_url or settings.tenant_base_url
        self.tenant = tenant or settings.TENANT
        self.allowed_roles = {r.lower() for r in (allowed_roles or settings.ALLOWED_ROLES)}
        self.session = session if session is not None else SessionStore(settings.SESSION_FILE)
        self.http = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout or settings.REQUEST_TIMEOUT_SECONDS,
        )
        self.refresher = TokenRefreshCoordinator(self.http, self.session)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    # ============================================================
    # Authentification
    # ============================================================

    async def login(self, username: str, password: str) -> AuthUser:
        """
        Échange les identifiants contre une paire de jetons.

        Lève AuthError si le backend refuse les identifiants, ou si l'utilisateur
        n'a pas un rôle autorisé (les jetons sont alors effacés).
        """
        response = await self._send(
            "POST",
            f"{AUTH_PREFIX}/login",
            data={"username": username, "password": password},
        )
        if not response.is_success:
            logger.info("Échec de connexion pour %s (HTTP %d)", username, response.status_code)
            raise AuthError("Identifiants invalides.")

        try:
            payload = LoginResponse.model_validate(response.json())
        except ValueError as exc:
            raise ApiError(response.status_code, f"Réponse de login inattendue : {exc}") from exc

        self.session.store_tokens(payload.access_token, payload.refresh_token)

        role = payload.user.effective_role()
        if role not in self.allowed_roles:
            self.session.clear()
            logger.warning("Connexion refusée pour %s : rôle '%s' non autorisé.", username, role)
            raise AuthError("Cet utilisateur n'a pas la permission d'accéder au module web (rôle invalide).")

        user = AuthUser(
            username=payload.user.email or username,
            tenant=self.tenant,
            role=role,
            name=payload.user.name,
            email=payload.user.email,
        )
        self.session.set_user(user)
        logger.info("Utilisateur connecté : %s (%s)", user.username, role)
        return user

    def restore_session(self) -> bool:
        """Recharge la session persistée si le rôle de l'utilisateur est toujours autorisé."""
        return self.session.restore(self.allowed_roles)

    def logout(self) -> None:
        self.session.clear()

    def is_authenticated(self) -> bool:
        return self.session.is_authenticated()

    def get_auth_headers(self) -> Dict[str, str]:
        return self.session.get_auth_headers()

    # ============================================================
    # Requêtes authentifiées
    # ============================================================

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        response_model: Any = None,
    ) -> Any:
        """
        Envoie une requête authentifiée et retourne le corps décodé.

        - response_model : type attendu (modèle Pydantic, List[...], Union...) ;
          None retourne le JSON brut.
        - 204 ou corps vide → None.
        """
        token_used = self.session.access_token
        response = await self._send(method, path, json=json, params=params)

        if response.status_code == 401 and not path.startswith(AUTH_PREFIX):
            if self.session.access_token and self.session.access_token != token_used:
                # Jeton déjà renouvelé par un autre appelant de la même vague
                refreshed = True
            else:
                refreshed = await self.refresher.refresh()

            if not refreshed:
                self.session.clear()
                raise SessionExpiredError()
            response = await self._send(method, path, json=json, params=params)

        if not response.is_success:
            raise _error_from_response(response)

        if response.status_code == 204 or not response.content:
            return None

        try:
            payload = response.json()
        except ValueError:
            if response_model is not None:
                raise ApiError(response.status_code, f"Réponse non JSON pour {method} {path}.")
            return response.text

        if response_model is None:
            return payload
        try:
            return TypeAdapter(response_model).validate_python(payload)
        except PydanticValidationError as exc:
            logger.debug("Réponse inattendue pour %s %s : %s", method, path, exc)
            raise ApiError(
                response.status_code,
                f"Réponse inattendue du backend pour {method} {path} ({exc.error_count()} erreur(s)).",
            ) from exc

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = {"Accept": "application/json", **self.session.get_auth_headers()}
        try:
            return await self.http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(0, f"Erreur réseau lors de {method} {path} : {exc}") from exc


def _error_from_response(response: httpx.Response) -> ApiError:
    """Construit l'erreur en reprenant le texte renvoyé par le serveur s'il existe."""
    message = f"Requête API échouée : {response.status_code} {response.reason_phrase}"
    text = response.text
    if text:
        message = f"{message} - {text}"
    if response.status_code == 409:
        return ConflictError(response.status_code, message)
    return ApiError(response.status_code, message)
