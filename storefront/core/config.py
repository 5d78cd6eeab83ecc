# storefront/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres connection string; sqlite:// works locally)
      - JWT_SECRET (signing secret of the identity provider's access tokens)

    Optional:
      - ADMIN_EMAILS (JSON list; matching profiles get is_admin=True)
      - LOCAL_CART_DIR (directory for guest cart slots; unset = in-memory)
      - REQUIRE_SIGN_IN_FOR_ADD (guests must sign in before adding items)
    """

    PROJECT_NAME: str = "Storefront Cart API"
    API_V1_STR: str = "/api/v1"

    # DB config
    DATABASE_URL: str

    # JWT verification (backend-side)
    JWT_SECRET: str
    JWT_ALG: str = "HS256"

    ADMIN_EMAILS: list[str] = []

    # Guest cart slots
    LOCAL_CART_KEY: str = "cart"
    LOCAL_CART_DIR: str | None = None

    # Add-to-cart gating
    REQUIRE_SIGN_IN_FOR_ADD: bool = True
    SIGN_IN_PROMPT_MESSAGE: str = "You need to sign in to add items to your cart"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
