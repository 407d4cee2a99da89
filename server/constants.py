"""
Rule constants for Pinak.

This module is the single source of truth for card point values and the
numbers that drive dealing, scoring and room limits. Values come from
config.py, which reads the environment (see .env.example).

Standard Pinak scoring:
    - Wildcard (any 2): 2 points
    - Ace: 2 points
    - Every other card: 1 point
    - Going out: run points + 10 bonus
    - Never opening a run in a round doubles the net loss
    - First to 151 (player or team) ends the game
"""

from config import config


# =============================================================================
# Card Values - Single Source of Truth
# =============================================================================

CARD_POINTS: dict[str, int] = config.card_values.to_dict()

WILDCARD_RANK = "2"


# =============================================================================
# Game Constants
# =============================================================================

HAND_SIZE = config.game_defaults.hand_size
WIN_SCORE = config.game_defaults.win_score
WINNER_BONUS = config.game_defaults.winner_bonus
UNOPENED_PENALTY_MULTIPLIER = config.game_defaults.unopened_penalty_multiplier
MAX_TEAM_SIZE = config.game_defaults.max_team_size
NUM_TEAMS = 2

MAX_PLAYERS = config.MAX_PLAYERS_PER_ROOM
MIN_PLAYERS = config.MIN_PLAYERS_TO_START
ROOM_CODE_LENGTH = config.ROOM_CODE_LENGTH

# Number of recent log events included in each state snapshot
STATE_LOG_TAIL = 20


def get_card_points(rank_str: str) -> int:
    """
    Get point value for a card rank string.

    Args:
        rank_str: Card rank as string ('2', '3', ..., 'K', 'A').

    Returns:
        Point value for the card (0 for unknown ranks).
    """
    return CARD_POINTS.get(rank_str, 0)
