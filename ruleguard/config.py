"""
Engine configuration.

Values are read from the environment once at import time. Every component
also accepts an explicit EngineConfig so callers (and tests) can bypass
the environment entirely.
"""

from __future__ import annotations
from dataclasses import dataclass
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Environment configuration
RULEGUARD_GAME_TIME_LIMIT = float(os.getenv("RULEGUARD_GAME_TIME_LIMIT", "15"))
RULEGUARD_SECONDS_PER_TAP = float(os.getenv("RULEGUARD_SECONDS_PER_TAP", "0.5"))
RULEGUARD_MAX_AUTO_REPAIRS = int(os.getenv("RULEGUARD_MAX_AUTO_REPAIRS", "10"))
RULEGUARD_DRY_RUN = _env_bool("RULEGUARD_DRY_RUN", False)
RULEGUARD_REWRITE_MODEL = os.getenv("RULEGUARD_REWRITE_MODEL", "gpt-4o-mini")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_API_BASE_URL = os.getenv("OPENAI_API_BASE_URL")


@dataclass
class EngineConfig:
    """
    Tunables shared by the simulator and the repair engine.

    game_time_limit: seconds before the implicit timeout failure
    seconds_per_tap: estimated player time per tap on the success path
    max_auto_repairs: upper bound on direct fixes applied per repair cycle
    dry_run: skip the rewrite collaborator (deterministic fixes still run)
    """
    game_time_limit: float = 15.0
    seconds_per_tap: float = 0.5
    max_auto_repairs: int = 10
    dry_run: bool = False

    @classmethod
    def from_env(cls) -> EngineConfig:
        return cls(
            game_time_limit=RULEGUARD_GAME_TIME_LIMIT,
            seconds_per_tap=RULEGUARD_SECONDS_PER_TAP,
            max_auto_repairs=RULEGUARD_MAX_AUTO_REPAIRS,
            dry_run=RULEGUARD_DRY_RUN,
        )
