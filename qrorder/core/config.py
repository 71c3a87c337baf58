"""Application configuration."""

from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "qrorder API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    log_level: str = getenv("LOG_LEVEL", "INFO")
    database_url: str = getenv("DATABASE_URL", "sqlite:///./qrorder.db")
    auto_create_schema: bool = getenv("AUTO_CREATE_SCHEMA", "1") == "1"
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    session_secret: str = getenv("SESSION_SECRET", "dev-session-secret-change-me")
    access_token_cookie: str = getenv("ACCESS_TOKEN_COOKIE", "access_token")
    role_hint_cookie: str = "role"
    role_override_private_network: bool = getenv("ROLE_OVERRIDE_PRIVATE_NETWORK", "0") == "1"
    tables_self_heal_on_read: bool = getenv("TABLES_SELF_HEAL_ON_READ", "1") == "1"
    public_base_url: str = getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    item_fallback_label: str = getenv("ITEM_FALLBACK_LABEL", "Item")
    orphan_order_grace_seconds: int = int(getenv("ORPHAN_ORDER_GRACE_SECONDS", "300"))

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"


settings: Settings = Settings()
