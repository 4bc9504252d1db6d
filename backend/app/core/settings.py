# backend/app/core/settings.py - Configuración de la aplicación (env + .env)

import logging
from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================
    # App metadata
    # =========================
    PROJECT_NAME: str = "Client Management System API"
    VERSION: str = "1.0.0"
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # Entorno
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # =========================
    # Base de datos
    # =========================
    DATABASE_URL: str = "sqlite:///./database/clients.db"
    DATABASE_ECHO: bool = False

    # =========================
    # CORS
    # =========================
    # Acepta tanto lista como string separado por comas
    ALLOWED_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    @field_validator("ALLOWED_ORIGINS")
    @classmethod
    def parse_origins(cls, v):
        """Convierte string separado por comas en lista."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v or []


# ===== INSTANCIA GLOBAL =====
settings = Settings()


def log_settings(current: Settings) -> None:
    """Log de configuración sin exponer credenciales de la URL de base de datos."""
    db_url = current.DATABASE_URL
    if "@" in db_url:
        scheme, _, rest = db_url.partition("://")
        db_url = f"{scheme}://***@{rest.split('@', 1)[1]}"

    logger.info("===== %s v%s =====", current.PROJECT_NAME, current.VERSION)
    logger.info("Entorno: %s | Debug: %s", current.ENVIRONMENT, current.DEBUG)
    logger.info("Base de datos: %s", db_url)
    logger.info("CORS orígenes (%d): %s", len(current.ALLOWED_ORIGINS), ", ".join(current.ALLOWED_ORIGINS))
