"""
Configuration - Runtime settings read from the environment.

Every setting has a default so the server runs with no environment at all.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Server and orchestration settings."""
    max_players: int = 4
    turn_timeout_seconds: float = 30.0
    bot_turn_delay: float = 1.0
    bot_action_delay: float = 1.5
    max_timeouts: int = 3
    bot_strategy: str = "scored"
    bot_profile: str = "cautious"
    log_level: str = "INFO"
    log_json: bool = False
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            max_players=int(os.getenv("LUDO_MAX_PLAYERS", "4")),
            turn_timeout_seconds=float(os.getenv("LUDO_TURN_TIMEOUT_SECONDS", "30")),
            bot_turn_delay=float(os.getenv("LUDO_BOT_TURN_DELAY", "1.0")),
            bot_action_delay=float(os.getenv("LUDO_BOT_ACTION_DELAY", "1.5")),
            max_timeouts=int(os.getenv("LUDO_MAX_TIMEOUTS", "3")),
            bot_strategy=os.getenv("LUDO_BOT_STRATEGY", "scored"),
            bot_profile=os.getenv("LUDO_BOT_PROFILE", "cautious"),
            log_level=os.getenv("LUDO_LOG_LEVEL", "INFO").upper(),
            log_json=_env_bool("LUDO_LOG_JSON"),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        )
