"""
Coordinateur de rafraîchissement des jetons.

Quand plusieurs requêtes reçoivent un 401 en même temps, un seul appel réseau à
/auth/refresh est lancé : les appelants suivants attendent la même tâche et
observent le même résultat. Le marqueur est effacé dès que l'appel se termine,
succès ou échec.

Échec fermé : refus du backend, erreur réseau, réponse mal formée ou absence de
refresh token → tous les jetons sont effacés et le résultat est False.
Pas de boucle de réessai : une seule tentative par vague de 401.
"""

import asyncio
import logging
from typing import Optional

import httpx

from eventhub.schemas.auth import RefreshRequest, RefreshResponse
from eventhub.services.session_store import SessionStore

logger = logging.getLogger(__name__)

REFRESH_PATH = "/auth/refresh"


class TokenRefreshCoordinator:
    def __init__(self, http: httpx.AsyncClient, session: SessionStore):
        self.http = http
        self.session = session
        self._in_flight: Optional[asyncio.Task] = None
        self.refresh_calls = 0  # nombre d'appels réseau réellement émis

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    async def refresh(self) -> bool:
        """
        Rafraîchit l'access token. Retourne True si de nouveaux jetons sont stockés.

        Si un rafraîchissement est déjà en cours, attend son résultat au lieu
        d'en lancer un second.
        """
        if self._in_flight is not None:
            return await asyncio.shield(self._in_flight)

        refresh_token = self.session.refresh_token
        if not refresh_token:
            logger.warning("Rafraîchissement impossible : aucun refresh token.")
            self.session.clear()
            return False

        self._in_flight = asyncio.ensure_future(self._do_refresh(refresh_token))
        return await asyncio.shield(self._in_flight)

    async def _do_refresh(self, refresh_token: str) -> bool:
        try:
            self.refresh_calls += 1
            response = await self.http.post(
                REFRESH_PATH,
                json=RefreshRequest(refresh_token=refresh_token).model_dump(),
            )
            if not response.is_success:
                logger.warning("Refresh refusé par le backend (HTTP %d), déconnexion.", response.status_code)
                self.session.clear()
                return False

            data = RefreshResponse.model_validate(response.json())
            self.session.store_tokens(data.access_token, data.refresh_token or refresh_token)
            logger.info("Jetons rafraîchis.")
            return True
        except (httpx.HTTPError, ValueError) as exc:
            # ValueError : corps non JSON ou ValidationError pydantic
            logger.warning("Erreur pendant le refresh, déconnexion : %s", exc)
            self.session.clear()
            return False
        finally:
            self._in_flight = None
