"""Play-mode game state."""

from kibitz.game.outcome import game_over_text, game_over_title
from kibitz.game.session import GameEvents, GamePhase, GameSession

__all__ = [
    "GameEvents",
    "GamePhase",
    "GameSession",
    "game_over_text",
    "game_over_title",
]
