from dota_cup.bracket.errors import (
    BracketError,
    BracketLocked,
    InsufficientTeams,
    InvalidSeeding,
    InvalidTransition,
    InvalidWinner,
    MatchNotFound,
    TeamsNotSeated,
)
from dota_cup.bracket.generator import generate_bracket
from dota_cup.bracket.advancer import advance_bye, record_game, record_result, start_match

__all__ = [
    "BracketError",
    "BracketLocked",
    "InsufficientTeams",
    "InvalidSeeding",
    "InvalidTransition",
    "InvalidWinner",
    "MatchNotFound",
    "TeamsNotSeated",
    "generate_bracket",
    "advance_bye",
    "record_game",
    "record_result",
    "start_match",
]
