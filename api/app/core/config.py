"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.
Soporta configuracion dinamica para desarrollo (ENVIRONMENT=development)
y produccion (ENVIRONMENT=production).
"""
import json
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field, field_validator

from app.shared.constants.entity_types import DEFAULT_MERGE_IGNORE_FIELDS, WRITE_BATCH_LIMIT


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    Stores:
    - Firestore es la fuente de verdad. Sin FIRESTORE_PROJECT_ID se usan
      las credenciales por defecto de Google (GOOGLE_APPLICATION_CREDENTIALS).
    - SECONDARY_DATABASE_URL apunta a la base SQL local. Acepta URLs
      sqlite:// o postgresql:// (se normalizan al driver async).
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Finanzas Sync Backend")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Store primario (Firestore)
    FIRESTORE_PROJECT_ID: str = Field(default="")
    FIRESTORE_DATABASE: str = Field(default="")

    # Store secundario (SQL)
    SECONDARY_DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./data/mirror.db")
    DB_ECHO: bool = Field(default=False)

    # Sincronizacion
    SYNC_CHUNK_SIZE: int = Field(default=WRITE_BATCH_LIMIT)
    SYNC_STAMP_UPDATED_AT: bool = Field(default=True)
    # True: solo tipos declarados; sin heuristica por nombre de campo
    SYNC_STRICT_SCHEMA: bool = Field(default=False)
    MERGE_IGNORE_FIELDS: str = Field(default=",".join(DEFAULT_MERGE_IGNORE_FIELDS))
    SYNC_LOG_RETENTION_DAYS: int = Field(default=30)

    # Exportacion CSV
    CSV_EXPORT_DIR: str = Field(default="exports")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @field_validator("SYNC_CHUNK_SIZE")
    @classmethod
    def _validate_chunk_size(cls, value: int) -> int:
        if value < 1 or value > WRITE_BATCH_LIMIT:
            raise ValueError(f"SYNC_CHUNK_SIZE debe estar entre 1 y {WRITE_BATCH_LIMIT}")
        return value

    @computed_field
    @property
    def merge_ignore_fields(self) -> List[str]:
        """Campos excluidos de la comparacion de merge (lista separada por comas)."""
        return [f.strip() for f in self.MERGE_IGNORE_FIELDS.split(",") if f.strip()]

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuracion de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        # Si no es JSON valido, retornar como lista simple
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuración
settings = Settings()
