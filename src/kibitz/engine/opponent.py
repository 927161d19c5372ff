"""Engine move selection for a rating-limited opponent."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from kibitz.config import EngineSettings
from kibitz.engine.strength import blunder_probability, pick_weakened_move

if TYPE_CHECKING:
    import chess

    from kibitz.engine.coordinator import RequestCoordinator

_LOGGER = logging.getLogger(__name__)

# At or below this blunder rate the weakening would almost always pick line 1.
_BEST_MOVE_ONLY_PROBABILITY = 0.03
_CANDIDATE_LINES = 3


async def request_weak_or_best_move(
    coordinator: RequestCoordinator,
    fen: str,
    rating: int,
    *,
    settings: EngineSettings | None = None,
    rng: random.Random | None = None,
) -> chess.Move | None:
    """Pick the engine's reply in *fen* for an opponent rated *rating*."""
    settings = settings or EngineSettings()
    probability = blunder_probability(
        rating,
        threshold=settings.blunder_threshold,
        spread=settings.blunder_spread,
    )
    if probability <= _BEST_MOVE_ONLY_PROBABILITY:
        return await coordinator.request_best_move(fen)

    result = await coordinator.request_ranked_suggestions(fen, _CANDIDATE_LINES)
    picked = pick_weakened_move(fen, result.suggestions, probability, rng)
    if picked is not None:
        _LOGGER.debug(
            "Weakened pick at %d (p=%.3f): %s", rating, probability, picked.uci()
        )
        return picked
    return await coordinator.request_best_move(fen)
