"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration loaded from VERITAS_* environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="VERITAS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Service
    service_name: str = "veritas-engine"
    log_level: str = "INFO"

    # Observability
    metrics_enabled: bool = True


settings = Settings()
