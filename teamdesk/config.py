"""Configuration management using pydantic-settings."""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database settings
    db_server: str = "localhost"
    db_name: str = "teamdesk"
    db_user: str = "teamdesk"
    db_password: str = ""
    db_port: int = 5432
    db_pool_size: int = 20
    db_max_overflow: int = 40
    # Seconds to wait for a pooled connection before returning 503
    db_pool_timeout: int = 15
    db_warmup_connections: int = 5
    sql_echo: bool = False

    # JWT settings
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 1440

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: str = "*"

    # Redis settings (ARQ job queue)
    redis_url: str = "redis://localhost:6379/0"

    # ARQ Worker settings
    # Auto-checkout job: runs at these hours (comma-separated, 24h format)
    arq_auto_checkout_hours: str = "0"
    # Minute within each scheduled hour
    arq_auto_checkout_minute: int = 5

    # Permission matrix cache lifetime
    permission_cache_ttl_seconds: int = 300

    # Workday settings (HH:MM, naive UTC clock)
    work_day_start: str = "09:00"
    work_day_end: str = "17:00"
    late_grace_minutes: int = 15
    hours_per_day: float = 8
    max_hours_per_day: float = 12
    default_checkout_hours: float = 8
    # Python weekday numbers, Monday = 0
    weekend_days: str = "5,6"
    late_pattern_threshold: int = 3

    @property
    def database_url(self) -> str:
        """Build PostgreSQL async connection string."""
        from urllib.parse import quote_plus
        return (
            f"postgresql+asyncpg://{self.db_user}:{quote_plus(self.db_password)}"
            f"@{self.db_server}:{self.db_port}/{self.db_name}"
        )

    @property
    def sync_database_url(self) -> str:
        """Build PostgreSQL sync connection string for Alembic."""
        from urllib.parse import quote_plus
        return (
            f"postgresql+psycopg2://{self.db_user}:{quote_plus(self.db_password)}"
            f"@{self.db_server}:{self.db_port}/{self.db_name}"
        )

    @property
    def cors_origin_list(self) -> List[str]:
        """Split the comma-separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def weekend_day_list(self) -> List[int]:
        """Weekend days as Python weekday numbers."""
        return [int(d) for d in self.weekend_days.split(",") if d.strip()]


# Global settings instance
settings = Settings()
