from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    default_currency: str = "NGN"
    seed_path: Optional[Path] = None
    log_level: str = "INFO"

    recent_limit: int = 5
    activity_limit: int = 7

    model_config = SettingsConfigDict(env_prefix="MTRACKER_", env_file=".env", extra="ignore")


def get_settings() -> Settings:
    return Settings()
