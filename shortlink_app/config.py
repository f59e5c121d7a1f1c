from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True

    # Application
    app_name: str = "Expiring URL Shortener"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # URL Shortener specific
    base_url: str = "http://127.0.0.1:8000"  # Fallback when the request host is unknown
    shortcode_length: int = 6
    max_shortcode_attempts: int = 10
    max_validity_minutes: int = 100 * 365 * 24 * 60  # 100 years; expiry must fit in a datetime

    # Record storage
    record_store_backend: str = "memory"  # Options: "memory", "sqlalchemy"
    database_url: str = "sqlite://"  # In-memory SQLite, durability is not required

    # Audit log
    audit_log_backend: str = "memory"  # Options: "memory", "redis"
    redis_url: str = "redis://localhost:6379/0"
    audit_log_key: str = "shortlink:audit"
    audit_log_default_limit: int = 100

    # Location lookup
    location_lookup_timeout: float = 0.5  # Seconds before location degrades to "Unknown"

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
