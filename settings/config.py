"""
Settings module for the talent catalog service.

Environment-based configuration with sensible defaults.
All settings can be overridden via environment variables or a `.env` file.
"""

from functools import lru_cache
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    In production, credentials should be set via environment variables.
    """

    # Environment
    environment: str = Field(
        default="development",
        description="Environment name (development, qa, production)"
    )

    # Database Configuration
    db_host: str = Field(default="localhost", alias="TALENT_DB_HOST")
    db_port: int = Field(default=5432, alias="TALENT_DB_PORT")
    db_user: str = Field(default="postgres", alias="TALENT_DB_USER")
    db_password: Optional[str] = Field(default=None, alias="TALENT_DB_PASSWORD")
    db_name: str = Field(default="talent", alias="TALENT_DB_NAME")
    db_pool_size: int = Field(
        default=10,
        description="SQLAlchemy connection pool size"
    )
    db_echo: bool = Field(
        default=False,
        description="Echo SQL statements (debugging only)"
    )

    # LLM Configuration
    openai_api_key: Optional[str] = Field(
        default=None,
        description="API key for the OpenAI-compatible chat endpoint"
    )
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Override base URL for an OpenAI-compatible provider"
    )
    classification_model: str = Field(
        default="gpt-4o",
        alias="AI_CLASSIFICATION_MODEL",
        description="Model used to assign a parent role to custom sub-roles"
    )
    synonym_model: str = Field(
        default="gpt-4o-mini",
        description="Cheaper model used for synonym generation"
    )
    classification_timeout_seconds: float = Field(
        default=15.0,
        description="Hard timeout for a single classification attempt"
    )
    synonym_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for synonym generation (failures degrade to [])"
    )
    low_confidence_threshold: float = Field(
        default=0.7,
        description="Below this confidence the alternatives are surfaced to the caller"
    )

    # Search
    search_default_limit: int = Field(default=50)
    search_max_limit: int = Field(default=100)

    # Radar projection
    radar_default_limit: int = Field(default=7)
    radar_core_threshold: float = Field(default=0.85)

    # Identity
    jwt_secret: Optional[str] = Field(default=None, alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256")
    local_tenant_id: str = Field(
        default="local-tenant",
        alias="TALENT_LOCAL_TENANT_ID",
        description="Tenant used when no token is sent in local development"
    )

    # Logging
    datadog_api_key: Optional[str] = Field(default=None, alias="DATADOG_API_KEY")
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_local(self) -> bool:
        """Local development: no remote database host configured."""
        host = self.db_host.lower()
        return host in ("localhost", "127.0.0.1") and not self.is_production


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are cached for performance. To reload, use:
        get_settings.cache_clear()
    """
    return Settings()

