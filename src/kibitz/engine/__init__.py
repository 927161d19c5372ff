"""Engine package: UCI transport, request coordination and strength policy."""

from kibitz.engine.cache import SuggestionCache
from kibitz.engine.coordinator import RequestCoordinator
from kibitz.engine.opponent import request_weak_or_best_move
from kibitz.engine.readiness import ReadinessGate
from kibitz.engine.service import EngineService
from kibitz.engine.strength import (
    StrengthProfile,
    blunder_probability,
    pick_weakened_move,
    skill_level,
    strength_profile,
)
from kibitz.engine.transport import LineTransport, SubprocessTransport

__all__ = [
    "EngineService",
    "LineTransport",
    "ReadinessGate",
    "RequestCoordinator",
    "StrengthProfile",
    "SubprocessTransport",
    "SuggestionCache",
    "blunder_probability",
    "pick_weakened_move",
    "request_weak_or_best_move",
    "skill_level",
    "strength_profile",
]
