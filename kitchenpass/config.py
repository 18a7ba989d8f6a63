# config.py

"""Application configuration utilities.

Values are primarily loaded from ``config.json`` and may be overridden by
environment variables. The :func:`get_settings` helper merges the two sources
and caches the result.
"""

from __future__ import annotations

import json
import os
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class QueueNumberStyle(str, Enum):
    """Determine how the human readable queue number is generated.

    ``TIMESTAMP`` renders ``DDMMHHMM`` followed by two random digits, whereas
    ``SEQUENTIAL`` counts the orders of the business day (``A001``,
    ``A002``, ...). The default application setting is ``TIMESTAMP``.
    """

    TIMESTAMP = "timestamp"
    SEQUENTIAL = "sequential"


class Settings(BaseSettings):
    """Application settings merged from JSON and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./kitchenpass.db"
    redis_url: str = "redis://localhost:6379/0"
    sla_minutes: dict[str, int] = {"dine_in": 15, "takeaway": 20, "delivery": 20}
    sla_warning_ratio: float = 0.7
    kds_refresh_secs: int = 30
    cash_overpay_limit: Decimal = Decimal("1000")
    queue_number_style: QueueNumberStyle = QueueNumberStyle.TIMESTAMP
    business_timezone: str = "Asia/Bangkok"
    idempotency_ttl_secs: int = 86400
    log_level: str = "INFO"


# Cached singleton to avoid repeated file reads
@lru_cache
def get_settings() -> Settings:
    """Return merged settings with environment variable precedence.

    The configuration is read from ``config.json`` located alongside this file
    and fed into :class:`Settings`. Environment variables override any values
    from the JSON file.
    """

    config_path = Path(__file__).with_name("config.json")
    data = json.loads(config_path.read_text())
    env_override = {
        k.lower(): v
        for k, v in os.environ.items()
        if k.lower() in Settings.model_fields
    }
    merged = {**data, **env_override}
    return Settings(**merged)
