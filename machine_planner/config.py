"""
Configuration de l'application / Application configuration.
Utilise pydantic-settings pour charger depuis .env ou variables d'environnement.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Machine Planner"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True

    # Database - SQLite par défaut pour le développement
    # Database - SQLite by default for development
    DATABASE_URL: str = "sqlite+aiosqlite:///./machine_planner.db"

    # CORS - origines autorisées / allowed origins
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000", "http://localhost:1420"]

    # Rate Limiting
    RATE_LIMIT_DEFAULT: str = "60/minute"
    RATE_LIMIT_COPY_WEEK: str = "10/minute"

    # Planning - délai max d'un appel stockage (secondes) / max storage call duration (seconds)
    STORAGE_TIMEOUT_SECONDS: float = 10.0
    # append | skip_occupied | replace
    COPY_CONFLICT_POLICY: str = "append"
    # Suppression d'une entrée absente = succès / Deleting a missing entry is a success
    DELETE_MISSING_OK: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
