"""Centralised application settings loaded from environment / .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Local store (single key-value document)
    database_url: str = "sqlite+aiosqlite:///./unipool.db"
    store_key: str = "unipool_db"
    store_max_bytes: int = 5 * 1024 * 1024  # browser-style storage quota

    # Redis (mutation lock)
    redis_url: str = "redis://localhost:6379/0"
    lock_ttl_seconds: int = 30
    lock_timeout_seconds: float = 10.0
    lock_poll_seconds: float = 0.05

    # Matching / recommendations
    campus_destination: str = "FCC"

    # Maintenance worker
    cleanup_interval_seconds: int = 3600
    ride_retention_hours: int = 24

    # Artificial response delay at the API boundary (0 disables)
    simulated_latency_ms: int = 0

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
