"""Settings for the Fraud Case Tracker service.

Every group reads its own environment prefix (``APP_``, ``SERVER_``,
``DATABASE_``, ``OTEL_``, ``SECURITY_``, ``WORKFLOW_``).
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ASYNC_DRIVER = "postgresql+asyncpg"
SYNC_DRIVER = "postgresql+psycopg"


def with_driver(url: str, driver: str) -> str:
    """Replace the scheme of a PostgreSQL URL with ``driver``."""
    scheme, sep, rest = url.partition("://")
    if not sep or not scheme.startswith("postgres"):
        return url
    return f"{driver}://{rest}"


class AppEnvironment(str, Enum):
    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AppConfig(BaseSettings):
    name: str = "fraud-case-tracker"
    env: AppEnvironment = AppEnvironment.LOCAL
    version: str = "0.1.0"
    debug: bool = False
    log_level: LogLevel = LogLevel.INFO

    model_config = SettingsConfigDict(env_prefix="APP_")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | LogLevel) -> str | LogLevel:
        return v.upper() if isinstance(v, str) else v


class ServerConfig(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 2022
    workers: int = Field(default=4, ge=1)

    model_config = SettingsConfigDict(env_prefix="SERVER_")


class DatabaseConfig(BaseSettings):
    """Connection settings.

    ``DATABASE_URL_APP`` wins when set; otherwise the URL is assembled from
    host, port, name, user and password.
    """

    url_app: str = Field(default="", alias="database_url_app")
    url_admin: str = Field(default="", alias="database_url_admin")

    host: str = "localhost"
    port: int = 5432
    name: str = "fraud_cases"
    user: str = "postgres"
    password: SecretStr = SecretStr("")

    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 1800
    echo: bool = False

    model_config = SettingsConfigDict(env_prefix="DATABASE_", populate_by_name=True)

    def _base_url(self) -> str:
        if self.url_app:
            return self.url_app
        password = self.password.get_secret_value()
        return f"postgresql://{self.user}:{password}@{self.host}:{self.port}/{self.name}"

    @property
    def async_url(self) -> str:
        """URL for the application engine (asyncpg)."""
        return with_driver(self._base_url(), ASYNC_DRIVER)

    @property
    def sync_url(self) -> str:
        """URL for setup scripts (psycopg 3)."""
        return with_driver(self._base_url(), SYNC_DRIVER)


class ObservabilityConfig(BaseSettings):
    service_name: str = "fraud-case-tracker"
    otlp_endpoint: str | None = None
    otlp_insecure: bool = True
    log_record_format: str = "json"

    model_config = SettingsConfigDict(env_prefix="OTEL_")


class SecurityConfig(BaseSettings):
    cors_allowed_origins: str = "http://localhost:3000,http://localhost:5173"
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["GET", "POST", "PATCH"]
    cors_allow_headers: list[str] = ["Content-Type", "X-User-ID", "X-Request-ID"]

    # Drop details from 403/404 bodies
    sanitize_errors: bool = True

    # Header carrying the acting user's id
    user_header: str = "X-User-ID"

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    @field_validator("cors_allowed_origins", mode="after")
    @classmethod
    def split_origins(cls, v: str) -> list[str]:
        return [origin.strip() for origin in v.split(",") if origin.strip()]


class WorkflowConfig(BaseSettings):
    """Input rules of the case workflow."""

    min_reason_length: int = Field(default=10, ge=1)
    min_description_length: int = Field(default=10, ge=1)

    model_config = SettingsConfigDict(env_prefix="WORKFLOW_")


class Settings(BaseSettings):
    app: AppConfig = Field(default_factory=AppConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)

    @model_validator(mode="after")
    def require_sanitized_errors_in_prod(self) -> Settings:
        if self.app.env == AppEnvironment.PROD and not self.security.sanitize_errors:
            raise ValueError("SECURITY_SANITIZE_ERRORS cannot be disabled in prod")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and read the environment again."""
    get_settings.cache_clear()
    return get_settings()
