"""
Runtime configuration for the Bet Ledger.

Values come from the environment (a local .env file is loaded first).
"""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL = "postgresql://postgres@127.0.0.1:5432/bet_ledger"


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    snapshot_cron_hour: int = 4
    snapshot_timezone: str = "Europe/Madrid"
    scheduler_enabled: bool = True
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:8501"]
    )


def get_settings() -> Settings:
    """Build a Settings object from the current environment."""
    origins = os.getenv("CORS_ORIGINS")
    return Settings(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        snapshot_cron_hour=int(os.getenv("SNAPSHOT_CRON_HOUR", "4")),
        snapshot_timezone=os.getenv("SNAPSHOT_CRON_TIMEZONE", "Europe/Madrid"),
        scheduler_enabled=os.getenv("SCHEDULER_ENABLED", "true").lower() == "true",
        cors_origins=(
            [o.strip() for o in origins.split(",") if o.strip()]
            if origins
            else Settings().cors_origins
        ),
    )
