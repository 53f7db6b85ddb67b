"""Settings for Cragdesk, read once from the environment (and .env) and then frozen."""

from functools import lru_cache
from typing import Literal
from urllib.parse import urlsplit

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# SQLite for single-node installs, PostgreSQL otherwise.
VALID_DATABASE_URL_PREFIXES = (
    "sqlite://",
    "sqlite+pysqlite://",
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
)

DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_origin(value: str) -> str | None:
    """
    Reduce a URL or Origin header value to ``scheme://host[:port]``.

    Default ports are dropped and the result is lower-cased. Returns None when
    the value has no usable scheme or host (including the literal ``null``).
    """
    try:
        parts = urlsplit(value.strip())
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if scheme not in DEFAULT_PORTS or not host:
        return None
    if ":" in host:
        host = f"[{host}]"
    if port is None or port == DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


class Settings(BaseSettings):
    """
    Validated, immutable application settings from env and optional .env file.

    Built once at process start (see cragdesk.main) and handed to every
    component; nothing else reads the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_PREFIX: str = "/api"

    # SQLite by default (WAL journal, bounded busy wait); PostgreSQL also accepted.
    DATABASE_URL: str = "sqlite:///./data.db"
    DATABASE_BUSY_TIMEOUT_MS: int = 5000
    # Create missing tables on startup. Alembic migrations remain the source of truth.
    DATABASE_AUTO_CREATE: bool = True

    # Access tokens (JWT). Required when APP_ENV=prod.
    JWT_SECRET: SecretStr | None = None
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    # Rotating refresh tokens
    REFRESH_TOKEN_EXPIRE_DAYS: int = 14
    REFRESH_TOKEN_SWEEP_ENABLED: bool = True

    # Password hashing cost (bcrypt log rounds)
    BCRYPT_ROUNDS: int = 12

    # Cookies
    ACCESS_COOKIE_NAME: str = "cragdesk_token"
    REFRESH_COOKIE_NAME: str = "cragdesk_refresh"
    COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"
    # None means: secure cookies in prod, plain in dev.
    COOKIE_SECURE: bool | None = None

    # Origin allow-list for CORS and the CSRF origin guard (comma-separated).
    ALLOWED_ORIGINS: str = "http://localhost:5173"
    SERVER_ORIGIN: str = "http://localhost:8000"

    # Out-of-band admin recovery; endpoint is disabled when unset.
    RECOVERY_TOKEN: SecretStr | None = None

    # Initial admin bootstrap (only used when the users table is empty)
    BOOTSTRAP_ADMIN: bool = True
    ADMIN_USERNAME: str = "admin"
    ADMIN_FULL_NAME: str = "Admin"
    ADMIN_PASSWORD: SecretStr | None = None
    ADMIN_PASSWORD_FILE: str = "admin-password.txt"

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.strip().startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a SQLite or PostgreSQL URL (e.g. sqlite:///./data.db)"
            )
        return v.strip()

    @field_validator("DATABASE_BUSY_TIMEOUT_MS")
    @classmethod
    def validate_busy_timeout(cls, v: int) -> int:
        if v < 0 or v > 60000:
            raise ValueError("DATABASE_BUSY_TIMEOUT_MS must be between 0 and 60000")
        return v

    @field_validator("JWT_SECRET", "RECOVERY_TOKEN", "ADMIN_PASSWORD")
    @classmethod
    def blank_secret_is_unset(cls, v: SecretStr | None) -> SecretStr | None:
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
    def validate_access_expire(cls, v: int) -> int:
        if v < 1 or v > 1440:
            raise ValueError(
                "ACCESS_TOKEN_EXPIRE_MINUTES must be between 1 and 1440 (1 min to 1 day)"
            )
        return v

    @field_validator("REFRESH_TOKEN_EXPIRE_DAYS")
    @classmethod
    def validate_refresh_expire(cls, v: int) -> int:
        if v < 1 or v > 365:
            raise ValueError("REFRESH_TOKEN_EXPIRE_DAYS must be between 1 and 365")
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 4 or v > 16:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 16")
        return v

    @field_validator("ADMIN_USERNAME")
    @classmethod
    def validate_admin_username(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("ADMIN_USERNAME must be set and non-empty")
        return v.strip().lower()

    @property
    def allowed_origins(self) -> tuple[str, ...]:
        """Normalized origin allow-list; SERVER_ORIGIN is always included."""
        origins: list[str] = []
        for raw in [*self.ALLOWED_ORIGINS.split(","), self.SERVER_ORIGIN]:
            origin = normalize_origin(raw) if raw.strip() else None
            if origin and origin not in origins:
                origins.append(origin)
        return tuple(origins)

    @property
    def cookie_secure(self) -> bool:
        if self.COOKIE_SECURE is not None:
            return self.COOKIE_SECURE
        return self.APP_ENV == "prod"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (read once at process start)."""
    return Settings()
