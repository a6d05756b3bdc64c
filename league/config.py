# league/config.py
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./league.db"
    env: Literal["dev", "stage", "prod"] = "dev"
    debug: bool = False
    log_level: str = "INFO"
    access_log: bool = True
    sql_echo: bool = False
    auto_init_db: bool = True

    # Season calendar
    league_timezone: str = "America/Los_Angeles"

    # Discipline rules
    yellow_accumulation_threshold: int = 3
    min_suspension_events: int = 1
    max_suspension_events: int = 10

    # Suspension status cache (seconds; 0 disables caching)
    suspension_cache_ttl_seconds: float = 60.0

    @property
    def is_dev(self) -> bool:
        return self.env == "dev" or self.debug is True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
