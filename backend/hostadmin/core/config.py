# backend/hostadmin/core/config.py

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from pydantic_settings import BaseSettings, SettingsConfigDict


def _strip_asyncpg_unsupported_params(url: str) -> str:
    """
    asyncpg does NOT accept sslmode or channel_binding as connect kwargs.
    If these appear in the URL query, SQLAlchemy can end up passing them to
    asyncpg.connect(), causing:
      TypeError: connect() got an unexpected keyword argument 'sslmode'
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = parse_qsl(parts.query, keep_blank_values=True)
    filtered = [(k, v) for (k, v) in params if k not in {"sslmode", "channel_binding"}]
    new_query = urlencode(filtered, doseq=True)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, new_query, parts.fragment))


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -----------------------------
    # Environment
    # -----------------------------
    # Use: development | staging | production
    ENVIRONMENT: str = "development"

    # -----------------------------
    # Document store (SQL backed)
    # -----------------------------
    DATABASE_URL_ASYNC: str = "sqlite+aiosqlite:///./hostadmin.db"

    # -----------------------------
    # JWT
    # -----------------------------
    # Keep a dev default, but enforce stronger requirements outside dev.
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # -----------------------------
    # Admin gate
    # -----------------------------
    # Comma separated UIDs that always pass admin verification (first/owner admins).
    BOOTSTRAP_ADMIN_UIDS: str = ""

    # -----------------------------
    # Subscription ledger
    # -----------------------------
    DEFAULT_SUBSCRIPTION_DAYS: int = 30
    AT_RISK_DAYS: int = 7

    # -----------------------------
    # CORS
    # -----------------------------
    # Comma separated origins allowed to call the API (admin dashboard).
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # -----------------------------
    # Logging
    # -----------------------------
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "hostadmin.log"

    @property
    def DATABASE_URL_ASYNC_CLEAN(self) -> str:
        return _strip_asyncpg_unsupported_params(self.DATABASE_URL_ASYNC)

    @property
    def bootstrap_admin_uids(self) -> list[str]:
        return _split_csv(self.BOOTSTRAP_ADMIN_UIDS)

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.CORS_ORIGINS)

    def model_post_init(self, __context) -> None:  # pydantic v2 hook
        env = (self.ENVIRONMENT or "").strip().lower()

        # Never run staging/production with a placeholder secret.
        if env in {"staging", "production"}:
            if not self.JWT_SECRET or self.JWT_SECRET.strip() == "dev-secret-change-me":
                raise ValueError("JWT_SECRET must be set to a strong value in staging/production.")
            if len(self.JWT_SECRET.strip()) < 32:
                raise ValueError("JWT_SECRET is too short; use at least 32 characters in staging/production.")

        # Light sanity checks (all envs)
        if self.JWT_ALGORITHM not in {"HS256"}:
            raise ValueError(f"Unsupported JWT_ALGORITHM={self.JWT_ALGORITHM!r}. Allowed: HS256")
        if self.DEFAULT_SUBSCRIPTION_DAYS <= 0:
            raise ValueError("DEFAULT_SUBSCRIPTION_DAYS must be a positive number of days.")
        if self.AT_RISK_DAYS < 0:
            raise ValueError("AT_RISK_DAYS must not be negative.")
        if self.LOG_LEVEL.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL={self.LOG_LEVEL!r}.")


settings = Settings()
