"""Rating -> engine configuration and move-weakening policy."""

from __future__ import annotations

import math
import random
from collections.abc import Sequence
from dataclasses import dataclass

import chess

from kibitz.analysis.models import Suggestion
from kibitz.config import EngineSettings
from kibitz.engine import uci

_MAX_SKILL = 20
_TOP_BLUNDER = 0.02
_MIN_WEAK_BLUNDER = 0.05
_MAX_WEAK_BLUNDER = 0.80
_RANDOM_MOVE_SHARE = 0.4
_THIRD_BEST_SHARE = 0.7

_DEFAULTS = EngineSettings()


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def skill_level(
    rating: float,
    *,
    floor: int = _DEFAULTS.rating_floor,
    ceiling: int = _DEFAULTS.rating_ceiling,
) -> int:
    """Rescale *rating* onto the engine's 0-20 ``Skill Level`` range."""
    scaled = (rating - floor) / (ceiling - floor) * _MAX_SKILL
    # Round half up, not to even: 0.5 steps must move the level.
    return int(clamp(math.floor(scaled + 0.5), 0, _MAX_SKILL))


def blunder_probability(
    rating: float,
    *,
    threshold: int = _DEFAULTS.blunder_threshold,
    spread: int = _DEFAULTS.blunder_spread,
) -> float:
    """Chance of deliberately playing a weaker move at *rating*.

    Flat 2% at or above *threshold*; below it, rises linearly from 5% at the
    threshold to 80% at ``threshold - spread`` and stays there.
    """
    if rating >= threshold:
        return _TOP_BLUNDER
    t = clamp((threshold - rating) / spread, 0.0, 1.0)
    return _MIN_WEAK_BLUNDER + (_MAX_WEAK_BLUNDER - _MIN_WEAK_BLUNDER) * t


def pick_weakened_move(
    fen: str,
    suggestions: Sequence[Suggestion],
    probability: float,
    rng: random.Random | None = None,
) -> chess.Move | None:
    """Choose a move from ranked *suggestions*, weakened by *probability*.

    One roll decides the tier. The worst tier ignores the engine entirely and
    plays a random legal move; the next picks the weakest of the top three;
    the next the second best; otherwise the best line is played.
    """
    if not suggestions:
        return None
    rng = rng or random.Random()
    roll = rng.random()

    if roll < probability * _RANDOM_MOVE_SHARE:
        legal = list(chess.Board(fen).legal_moves)
        if legal:
            return rng.choice(legal)

    if roll < probability and len(suggestions) >= 2:
        if roll < probability * _THIRD_BEST_SHARE and len(suggestions) >= 3:
            return suggestions[:3][-1].move
        return suggestions[1].move

    return suggestions[0].move


@dataclass(slots=True, frozen=True)
class StrengthProfile:
    """Engine options derived from a target rating."""

    rating: int
    engine_elo: int
    skill: int
    blunder_probability: float

    def uci_options(self) -> tuple[str, ...]:
        return (
            uci.set_option("UCI_LimitStrength", True),
            uci.set_option("UCI_Elo", self.engine_elo),
            uci.set_option("Skill Level", self.skill),
        )


def strength_profile(rating: int, settings: EngineSettings = _DEFAULTS) -> StrengthProfile:
    return StrengthProfile(
        rating=rating,
        engine_elo=max(settings.engine_min_elo, rating),
        skill=skill_level(
            rating,
            floor=settings.rating_floor,
            ceiling=settings.rating_ceiling,
        ),
        blunder_probability=blunder_probability(
            rating,
            threshold=settings.blunder_threshold,
            spread=settings.blunder_spread,
        ),
    )
