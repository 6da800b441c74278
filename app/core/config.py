"""
Application configuration via environment variables.
Supports .env file auto-loading via pydantic-settings.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ── Application ────────────────────────────────────
    app_name: str = "KnowledgeConnect API"
    env: str = "dev"
    debug: bool = False

    # ── Security ───────────────────────────────────────
    secret_key: str = "change-me-in-production"
    access_token_expire_minutes: int = 10080  # 7 days
    refresh_token_expire_minutes: int = 43200  # 30 days
    algorithm: str = "HS256"
    login_max_attempts: int = 5
    login_lock_minutes: int = 15

    # ── Database ───────────────────────────────────────
    database_url: str = "sqlite:///./knowledgeconnect.db"
    db_ssl_verify: bool = True

    # ── CORS / Hosts ───────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    cors_allow_methods: str = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
    cors_allow_headers: str = "Content-Type,Authorization,X-Requested-With"
    trusted_hosts: str = ""

    # ── Rate Limiting ──────────────────────────────────
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 60

    @staticmethod
    def _split(value: str) -> list[str]:
        return [v.strip() for v in value.split(",") if v.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        return self._split(self.cors_origins)

    @property
    def cors_allow_methods_list(self) -> list[str]:
        return self._split(self.cors_allow_methods)

    @property
    def cors_allow_headers_list(self) -> list[str]:
        return self._split(self.cors_allow_headers)

    @property
    def trusted_hosts_list(self) -> list[str]:
        return self._split(self.trusted_hosts)

    @property
    def is_production(self) -> bool:
        return self.env.lower() in ("prod", "production")

    @field_validator("secret_key")
    @classmethod
    def warn_default_secret(cls, v: str) -> str:
        if v == "change-me-in-production":
            import logging
            logging.getLogger("knowledgeconnect.config").warning(
                "Using default secret key. Set SECRET_KEY env var for production!"
            )
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
