"""Configuration management using Pydantic settings."""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server settings loaded from STRONGHOLDS_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="STRONGHOLDS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Strongholds Engine API"
    log_level: str = "INFO"

    # Game
    seed: int = 42
    start_round: int = 1
    max_rounds: int = 20
    level_width: float = 1280
    level_height: float = 720

    # Tick loop
    tick_ms: int = 16           # ~60 Hz fixed step
    time_compression: float = 1.0

    # Vite dev servers
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://localhost:5175",
    ]


settings = Settings()
