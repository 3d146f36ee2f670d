"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="MedPulse Clinic API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Storage
    database_url: str = Field(
        default="sqlite+aiosqlite:///./medpulse.db",
        alias="DATABASE_URL",
    )
    storage_backend: str = Field(
        default="database",
        alias="STORAGE_BACKEND",
        description="Either 'database' or 'memory'",
    )

    # JWT (tokens are issued by the external login service)
    jwt_secret_key: str = Field(
        default="dev-secret-change-me",
        alias="JWT_SECRET_KEY",
    )
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=30, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Clinic
    clinic_name: str = Field(default="MedPulse Connect", alias="CLINIC_NAME")
    conflict_window_minutes: int = Field(default=60, alias="CONFLICT_WINDOW_MINUTES", gt=0)

    # Text generation proxy
    text_generation_url: str | None = Field(
        default=None,
        alias="TEXT_GENERATION_URL",
        description="Endpoint of the text generation proxy; unset disables generation",
    )
    text_generation_timeout_seconds: float = Field(
        default=5.0,
        alias="TEXT_GENERATION_TIMEOUT_SECONDS",
        gt=0,
    )

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def uses_memory_storage(self) -> bool:
        """Check if records are kept in process memory."""
        return self.storage_backend.lower() == "memory"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
