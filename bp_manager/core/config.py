"""
Configuración de la aplicación para MySQL y despliegue
"""
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    # Información del proyecto
    PROJECT_NAME: str = Field(default="BP Manager API")
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="production")
    DEBUG: bool = Field(default=False)

    # Configuración del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=5000)

    # Seguridad
    SECRET_KEY: str
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=7)

    # Base de datos MySQL
    DB_HOST: str = Field(default="localhost")
    DB_PORT: int = Field(default=3306)
    DB_NAME: str = Field(default="bp_manager")
    DB_USER: str = Field(default="bp_user")
    DB_PASSWORD: str = Field(default="")
    DB_CHARSET: str = Field(default="utf8mb4")

    # URL completa (tiene prioridad sobre DB_*, ej: sqlite:///./bp.db)
    DATABASE_URL: Optional[str] = Field(default=None)

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:8081",
            "http://localhost:19006"
        ]
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO")

    # Timezone por defecto del paciente
    DEFAULT_TIMEZONE: str = Field(default="UTC")

    # Adherencia
    ADHERENCE_WINDOW_DAYS: int = Field(default=7)
    ADHERENCE_GOOD_THRESHOLD: float = Field(default=90.0)
    ADHERENCE_FAIR_THRESHOLD: float = Field(default=75.0)
    REFILL_LOOKAHEAD_DAYS: int = Field(default=30)
    # Tolerancia de reloj del cliente para registrar dosis
    DOSE_CLOCK_SKEW_MINUTES: int = Field(default=5)

    # Umbrales de presión arterial por defecto
    BP_SYSTOLIC_HIGH: int = Field(default=140)
    BP_SYSTOLIC_LOW: int = Field(default=90)
    BP_DIASTOLIC_HIGH: int = Field(default=90)
    BP_DIASTOLIC_LOW: int = Field(default=60)

    @property
    def database_url(self) -> str:
        """Construir URL de conexión"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            f"?charset={self.DB_CHARSET}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Obtener configuración con cache"""
    return Settings()
