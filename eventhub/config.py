"""
Configuration centrale du client d'administration via variables d'environnement.
Charger depuis un fichier .env en développement.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Backend REST distant
    API_BASE_URL: str = "https://events-backend-zug5.onrender.com/api/v1"
    TENANT: str = "demo"
    REQUEST_TIMEOUT_SECONDS: float = 15.0

    # Authentification : rôles autorisés à utiliser le module web
    ALLOWED_ROLES: List[str] = ["admin", "client", "cliente"]
    SESSION_FILE: Optional[str] = None  # persistance des jetons (équivalent localStorage)

    # Miroir local des présences et certificats
    LOCAL_DATABASE_URL: str = "sqlite:///./eventhub.db"

    # Règles métier
    DEFAULT_MIN_PRESENCE_PCT: int = 75
    DEFAULT_PAGE_SIZE: int = 20

    # Environnement
    ENV: str = "development"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def tenant_base_url(self) -> str:
        """URL de base du tenant : {API_BASE_URL}/{TENANT}."""
        return f"{self.API_BASE_URL.rstrip('/')}/{self.TENANT}"


settings = Settings()
