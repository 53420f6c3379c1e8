# storefront/core/config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Storefront settings, read from the environment (or .env).

    Required:
      - SUPABASE_URL, SUPABASE_KEY (anon key)
      - DATABASE_URL (Supabase Postgres connection string)
      - SUPABASE_JWT_SECRET (verifies access tokens)

    SMTP settings are read by core.email_client directly.
    """

    PROJECT_NAME: str = "Mojtaba Tahrir Storefront"
    API_V1_STR: str = "/api/v1"

    # Supabase
    SUPABASE_URL: str
    SUPABASE_KEY: str
    # Service role key: avatar uploads and admin Auth calls only
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    DATABASE_URL: str

    # Public storefront, e.g. https://mojtabatahrir.com (password-reset links)
    SITE_URL: str = "http://localhost:3000"

    # Comma separated
    CORS_ORIGINS: str = (
        "http://localhost:3000,http://127.0.0.1:3000,https://mojtabatahrir.com"
    )

    # Contact form messages are delivered here
    STORE_INBOX_EMAIL: str = "info@mojtabatahrir.com"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
