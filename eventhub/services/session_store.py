"""
Session Store : conserve la paire de jetons (access / refresh) et l'utilisateur connecté.

Équivalent du localStorage du navigateur. Sans fichier, la session vit en mémoire ;
avec un fichier (settings.SESSION_FILE), elle survit au redémarrage du client.
Le login lui-même passe par ApiClient.login(), qui appelle store_tokens() / set_user().
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from eventhub.schemas.auth import AuthUser, StoredSession

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.user: Optional[AuthUser] = None

    # --- Jetons ---

    def store_tokens(self, access_token: str, refresh_token: str) -> None:
        self.access_token = access_token
        self.refresh_token = refresh_token
        self._save()

    def set_user(self, user: Optional[AuthUser]) -> None:
        self.user = user
        self._save()

    def clear(self) -> None:
        """Efface jetons et utilisateur. Ne lève jamais."""
        self.access_token = None
        self.refresh_token = None
        self.user = None
        if self.path is not None:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Impossible de supprimer le fichier de session %s : %s", self.path, exc)

    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def get_auth_headers(self) -> Dict[str, str]:
        """{"Authorization": "Bearer <jeton>"} si un access token est présent, sinon {}."""
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    # --- Persistance ---

    def restore(self, allowed_roles: Iterable[str]) -> bool:
        """
        Recharge la session persistée au démarrage.

        La session est abandonnée (et le fichier supprimé) si elle est illisible,
        sans jeton, sans utilisateur ou si le rôle de l'utilisateur n'est pas autorisé.
        Retourne True si une session valide a été restaurée.
        """
        if self.path is None or not self.path.exists():
            return False

        try:
            stored = StoredSession.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, PydanticValidationError) as exc:
            logger.warning("Session persistée illisible, abandon : %s", exc)
            self.clear()
            return False

        allowed = {r.lower() for r in allowed_roles}
        if not stored.access_token or stored.user is None:
            self.clear()
            return False
        if stored.user.role.lower() not in allowed:
            logger.warning("Session persistée avec un rôle non autorisé (%s), abandon.", stored.user.role)
            self.clear()
            return False

        self.access_token = stored.access_token
        self.refresh_token = stored.refresh_token
        self.user = stored.user
        return True

    def _save(self) -> None:
        if self.path is None:
            return
        snapshot = StoredSession(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            user=self.user,
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(snapshot.model_dump(mode="json")), encoding="utf-8")
