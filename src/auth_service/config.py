"""Auth Service — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Database ──────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./auth_service.db"

    # ── Cache (OTP state) ─────────────────────────────────
    cache_backend: str = "redis"  # "redis" or "memory"
    redis_url: str = "redis://localhost:6379/0"

    # ── JWT ───────────────────────────────────────────────
    jwt_access_token_secret: str = "changeme-access"
    jwt_refresh_token_secret: str = "changeme-refresh"
    jwt_algorithm: str = "HS256"
    access_token_expiry_minutes: int = 15
    refresh_token_expiry_days: int = 7

    # ── Cookies / CORS ────────────────────────────────────
    cookie_secure: bool = True
    cors_origins: list[str] = ["http://localhost:3000"]

    # ── SMTP ──────────────────────────────────────────────
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = "noreply@eshop.local"

    # ── App ───────────────────────────────────────────────
    app_name: str = "Auth Service"
    debug: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
