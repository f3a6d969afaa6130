"""
Taxonomie des erreurs du client.

- ValidationError : contrôles de formulaire côté client, levés avant tout appel réseau
- AuthError       : identifiants invalides, rôle non autorisé, session expirée
- NotFoundError   : entité référencée absente des miroirs locaux
- ApiError        : réponse non-2xx du backend ou charge utile mal formée
"""

from typing import Dict, Optional

from pydantic import ValidationError as PydanticValidationError


class EventHubError(Exception):
    """Racine de toutes les erreurs métier du client."""


class ValidationError(EventHubError):
    """Erreur de validation par champ (affichée en ligne sous chaque champ)."""

    def __init__(self, field_errors: Dict[str, str], message: Optional[str] = None):
        self.field_errors = dict(field_errors)
        super().__init__(message or "; ".join(self.field_errors.values()) or "Données invalides.")

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        """Convertit les erreurs d'un schéma Pydantic en erreurs par champ."""
        field_errors = {}
        for err in exc.errors():
            field = ".".join(str(part) for part in err["loc"]) or "__root__"
            field_errors.setdefault(field, err["msg"])
        return cls(field_errors)


class SelectionRequiredError(ValidationError):
    """Aucune sélection (événement, session...) alors qu'elle est requise."""

    def __init__(self, field: str, message: str):
        super().__init__({field: message}, message)


class AuthError(EventHubError):
    pass


class SessionExpiredError(AuthError):
    """Le rafraîchissement a échoué : l'interface doit renvoyer vers la page de connexion."""

    def __init__(self, message: str = "Session expirée. Veuillez vous reconnecter."):
        super().__init__(message)


class NotFoundError(EventHubError):
    pass


class ApiError(EventHubError):
    """Réponse en erreur du backend. status_code vaut 0 pour une erreur réseau."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class ConflictError(ApiError):
    """409 renvoyé par le backend (ex. suppression d'un événement ayant encore des jours)."""
