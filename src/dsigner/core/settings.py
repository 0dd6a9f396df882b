"""Application settings and configuration.

Settings are loaded from environment variables (and an optional ``.env``
file). Provider credentials live here and nowhere else; clients build their
immutable configuration objects from this module at construction time.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application metadata
    app_name: str = Field(default="dSigner API", alias="APP_NAME")
    app_version: str = Field(default="1.0.4", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Wallet binding store
    database_url: str = Field(default="sqlite:///./dsigner.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Identity provider (GoTrue-compatible auth API)
    identity_url: str = Field(default="http://localhost:54321", alias="SUPABASE_URL")
    identity_api_key: str = Field(default="", alias="SUPABASE_SERVICE_ROLE_KEY")
    identity_http_timeout_seconds: float = Field(
        default=10.0,
        alias="IDENTITY_HTTP_TIMEOUT_SECONDS",
    )

    # Custodial wallet provider
    custodian_url: str = Field(default="http://localhost:3005", alias="THIRDWEB_URL")
    custodian_bearer_token: str = Field(default="", alias="THIRDWEB_BEARER_TOKEN")
    custodian_http_timeout_seconds: float = Field(
        default=30.0,
        alias="CUSTODIAN_HTTP_TIMEOUT_SECONDS",
    )
    idempotency_key_prefix: str = Field(default="dsigner", alias="IDEMPOTENCY_KEY_PREFIX")

    # CORS configuration for browser signers
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["GET", "POST", "OPTIONS"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )


settings = Settings()
