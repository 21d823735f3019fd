"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "sqlite://",
)


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # SQLite for a single-box install, PostgreSQL when the pool is shared
    DATABASE_URL: str = "sqlite:///./wakehub.db"

    # JWT access tokens. Without JWT_SECRET a random per-process secret is used.
    JWT_SECRET: SecretStr | None = None
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    # Refresh tokens: "remember me" logins vs plain session logins
    REFRESH_TOKEN_REMEMBER_DAYS: int = 30
    REFRESH_TOKEN_SESSION_DAYS: int = 1

    # Argon2id cost parameters (memory in KiB)
    ARGON2_TIME_COST: int = 3
    ARGON2_MEMORY_COST: int = 65536
    ARGON2_PARALLELISM: int = 4

    TEMP_PASSWORD_LENGTH: int = 12

    # Optional admin account upserted at startup
    BOOTSTRAP_ADMIN_USERNAME: str | None = None
    BOOTSTRAP_ADMIN_PASSWORD: SecretStr | None = None

    # Wake-on-LAN and shutdown agent
    WOL_PORT: int = 9
    SHUTDOWN_AGENT_PORT: int = 3001
    SHUTDOWN_AGENT_TOKEN: SecretStr | None = None
    SHUTDOWN_AGENT_TIMEOUT_SEC: float = 5.0

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL or SQLite URL "
                "(e.g. postgresql:// or sqlite:///./wakehub.db)"
            )
        return v.strip()

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr | None) -> SecretStr | None:
        if v is None or not v.get_secret_value().strip():
            return None
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_ALGORITHM must be set and non-empty")
        if not v.strip().startswith("HS"):
            raise ValueError("JWT_ALGORITHM must be an HMAC algorithm (HS256, HS384, HS512)")
        return v.strip()

    @field_validator("ACCESS_TOKEN_EXPIRE_MINUTES")
    @classmethod
    def validate_access_token_expire_minutes(cls, v: int) -> int:
        if v < 1 or v > 1440:
            raise ValueError(
                "ACCESS_TOKEN_EXPIRE_MINUTES must be between 1 and 1440 (1 min to 1 day)"
            )
        return v

    @field_validator("REFRESH_TOKEN_REMEMBER_DAYS", "REFRESH_TOKEN_SESSION_DAYS")
    @classmethod
    def validate_refresh_token_days(cls, v: int) -> int:
        if v < 1 or v > 365:
            raise ValueError("Refresh token lifetimes must be between 1 and 365 days")
        return v

    @field_validator("ARGON2_TIME_COST", "ARGON2_PARALLELISM")
    @classmethod
    def validate_argon2_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("ARGON2_TIME_COST and ARGON2_PARALLELISM must be at least 1")
        return v

    @field_validator("ARGON2_MEMORY_COST")
    @classmethod
    def validate_argon2_memory_cost(cls, v: int) -> int:
        if v < 8:
            raise ValueError("ARGON2_MEMORY_COST must be at least 8 KiB")
        return v

    @field_validator("TEMP_PASSWORD_LENGTH")
    @classmethod
    def validate_temp_password_length(cls, v: int) -> int:
        if v < 8 or v > 128:
            raise ValueError("TEMP_PASSWORD_LENGTH must be between 8 and 128")
        return v

    @field_validator("BOOTSTRAP_ADMIN_USERNAME")
    @classmethod
    def validate_bootstrap_admin_username(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip().lower()

    @field_validator("WOL_PORT", "SHUTDOWN_AGENT_PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("Ports must be between 1 and 65535")
        return v

    @field_validator("SHUTDOWN_AGENT_TIMEOUT_SEC")
    @classmethod
    def validate_shutdown_agent_timeout(cls, v: float) -> float:
        if v <= 0 or v > 60:
            raise ValueError(
                "SHUTDOWN_AGENT_TIMEOUT_SEC must be greater than 0 and at most 60"
            )
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
