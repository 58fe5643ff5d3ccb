from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"  # Options: "development", "production"
    debug: bool = False
    log_level: str = "INFO"

    # Application
    app_name: str = "ShortLink URL Shortening Service"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Public base URL for short links (BASE_URL). Derived per request if unset.
    base_url: Optional[str] = None

    # Key-value store
    store_backend: str = "redis"  # Options: "redis", "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float = 2.0
    redis_max_connections: int = 50  # above the 40-thread request pool
    redis_pool_timeout: float = 5.0
    store_key_prefix: str = "url_mapping:"
    mapping_ttl: int = 365 * 24 * 60 * 60  # 1 year in seconds

    # URL Shortener specific
    short_code_length: int = 6
    max_retries: int = 100

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def bind_host(self) -> str:
        """Production listens on every interface, development on `host`."""
        return "0.0.0.0" if self.is_production else self.host


# Create settings instance
settings = Settings()
