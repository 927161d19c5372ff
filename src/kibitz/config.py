"""Engine and strength configuration."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, replace

_ENV_ENGINE = "KIBITZ_ENGINE"
_ENV_THINK_TIME = "KIBITZ_THINK_TIME_MS"


@dataclass(slots=True, frozen=True)
class EngineSettings:
    """All tunables for the engine process and the strength policy."""

    # Process
    engine_command: tuple[str, ...] = ("stockfish",)
    threads: int = 1

    # Search
    think_time_ms: int = 1200
    analysis_lines: int = 3

    # Strength
    engine_min_elo: int = 1320  # Stockfish's UCI_Elo floor
    rating_floor: int = 600
    rating_ceiling: int = 2800
    blunder_threshold: int = 1600
    blunder_spread: int = 1000
    default_rating: int = 1600

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> EngineSettings:
        """Build settings with overrides from ``KIBITZ_*`` environment variables."""
        env = os.environ if environ is None else environ
        settings = cls()

        command = env.get(_ENV_ENGINE, "").strip()
        if command:
            settings = replace(settings, engine_command=tuple(shlex.split(command)))

        think_time = env.get(_ENV_THINK_TIME, "").strip()
        if think_time:
            try:
                value = int(think_time)
            except ValueError:
                raise ValueError(
                    f"{_ENV_THINK_TIME} must be an integer, got {think_time!r}"
                ) from None
            if value <= 0:
                raise ValueError(f"{_ENV_THINK_TIME} must be positive, got {value}")
            settings = replace(settings, think_time_ms=value)

        return settings
