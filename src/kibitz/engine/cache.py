"""Per-position memo of ranked engine suggestions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kibitz.analysis.models import Suggestion


class SuggestionCache:
    """Maps a FEN string to the ranked suggestions computed for it.

    Unbounded: the key space is the set of positions visited in one browsing
    session, and callers clear it when a new game starts or analysis ends.
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Suggestion, ...]] = {}

    def get(self, position: str) -> tuple[Suggestion, ...] | None:
        return self._entries.get(position)

    def set(self, position: str, suggestions: tuple[Suggestion, ...]) -> None:
        self._entries[position] = tuple(suggestions)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, position: object) -> bool:
        return position in self._entries

    def __len__(self) -> int:
        return len(self._entries)
