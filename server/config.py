"""
Centralized configuration for the Pinak game server.

Configuration is loaded from (in order of precedence):
1. Environment variables
2. .env file (if exists)
3. Default values

Usage:
    from config import config
    print(config.PORT)
    print(config.card_values)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


@dataclass
class CardValues:
    """Card point values - the single source of truth."""
    WILDCARD: int = 2
    ACE: int = 2
    DEFAULT: int = 1

    def to_dict(self) -> dict[str, int]:
        """Get card points keyed by rank string."""
        values = {
            rank: self.DEFAULT
            for rank in ("3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")
        }
        values["A"] = self.ACE
        values["2"] = self.WILDCARD
        return values


@dataclass
class GameDefaults:
    """Rule constants for a game of Pinak."""
    hand_size: int = 7
    win_score: int = 151
    winner_bonus: int = 10
    unopened_penalty_multiplier: int = 2
    max_team_size: int = 2


@dataclass
class ServerConfig:
    """Server configuration."""
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Room settings
    MAX_PLAYERS_PER_ROOM: int = 4
    MIN_PLAYERS_TO_START: int = 2
    ROOM_CODE_LENGTH: int = 4
    ROOM_ABANDON_TIMEOUT: int = 600
    ROOM_SWEEP_INTERVAL: int = 60

    # Card values
    card_values: CardValues = field(default_factory=CardValues)

    # Game rules
    game_defaults: GameDefaults = field(default_factory=GameDefaults)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        return cls(
            HOST=get_env("HOST", "0.0.0.0"),
            PORT=get_env_int("PORT", 8000),
            DEBUG=get_env_bool("DEBUG", False),
            LOG_LEVEL=get_env("LOG_LEVEL", "INFO"),
            ENVIRONMENT=get_env("ENVIRONMENT", "development"),
            MAX_PLAYERS_PER_ROOM=get_env_int("MAX_PLAYERS_PER_ROOM", 4),
            MIN_PLAYERS_TO_START=get_env_int("MIN_PLAYERS_TO_START", 2),
            ROOM_CODE_LENGTH=get_env_int("ROOM_CODE_LENGTH", 4),
            ROOM_ABANDON_TIMEOUT=get_env_int("ROOM_ABANDON_TIMEOUT", 600),
            ROOM_SWEEP_INTERVAL=get_env_int("ROOM_SWEEP_INTERVAL", 60),
            card_values=CardValues(
                WILDCARD=get_env_int("CARD_WILDCARD", 2),
                ACE=get_env_int("CARD_ACE", 2),
                DEFAULT=get_env_int("CARD_DEFAULT", 1),
            ),
            game_defaults=GameDefaults(
                hand_size=get_env_int("HAND_SIZE", 7),
                win_score=get_env_int("WIN_SCORE", 151),
                winner_bonus=get_env_int("WINNER_BONUS", 10),
                unopened_penalty_multiplier=get_env_int("UNOPENED_PENALTY_MULTIPLIER", 2),
                max_team_size=get_env_int("MAX_TEAM_SIZE", 2),
            ),
        )


# Global config instance - loaded once at module import
config = ServerConfig.from_env()


def reload_config() -> ServerConfig:
    """Reload configuration from environment (useful for testing)."""
    global config
    config = ServerConfig.from_env()
    return config
