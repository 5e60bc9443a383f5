"""
Configuration and environment loading.

- Loads a .env file (if present) into the environment.
- Exposes Settings, read from LOBBYCHESS_* environment variables with typed defaults.
"""

import os
from dataclasses import dataclass
from typing import Any, Callable

from dotenv import load_dotenv

from lobbychess.core.shared_types import PromotionPolicy

ENV_PREFIX = "LOBBYCHESS_"


def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
    value = os.environ.get(f"{ENV_PREFIX}{name}")
    # set but empty counts as unset
    if value is None or not value.strip():
        return default
    return cast(value) if cast else value


@dataclass(frozen=True)
class Settings:
    # Relay behaviour
    reset_delay_seconds: float = 5.0
    session_idle_timeout_seconds: float = 1800.0
    sweep_interval_seconds: float = 60.0
    promotion_policy: PromotionPolicy = PromotionPolicy.AUTO_QUEEN

    # Infrastructure
    database_url: str = "sqlite:///:memory:"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            reset_delay_seconds=_get("RESET_DELAY_SECONDS", 5.0, cast=float),
            session_idle_timeout_seconds=_get(
                "SESSION_IDLE_TIMEOUT_SECONDS", 1800.0, cast=float
            ),
            sweep_interval_seconds=_get("SWEEP_INTERVAL_SECONDS", 60.0, cast=float),
            promotion_policy=_get(
                "PROMOTION_POLICY", PromotionPolicy.AUTO_QUEEN, cast=PromotionPolicy
            ),
            database_url=_get("DATABASE_URL", "sqlite:///:memory:"),
            log_level=_get("LOG_LEVEL", "INFO", cast=str.upper),
            host=_get("HOST", "127.0.0.1"),
            port=_get("PORT", 3000, cast=int),
        )
