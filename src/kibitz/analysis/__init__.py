"""Analysis value types, timeline replay and analysis-mode navigation."""

from kibitz.analysis.models import (
    LoadOutcome,
    PlayedMove,
    ResultStatus,
    Suggestion,
    SuggestionResult,
    SuggestionState,
    TimelineEntry,
    rank_suggestions,
)
from kibitz.analysis.session import AnalysisSession, AnalysisSnapshot, NavigationAction
from kibitz.analysis.timeline import (
    SanitizedHistory,
    build_timeline,
    navigate_to,
    sanitize_history,
)

__all__ = [
    "AnalysisSession",
    "AnalysisSnapshot",
    "LoadOutcome",
    "NavigationAction",
    "PlayedMove",
    "ResultStatus",
    "SanitizedHistory",
    "Suggestion",
    "SuggestionResult",
    "SuggestionState",
    "TimelineEntry",
    "build_timeline",
    "navigate_to",
    "rank_suggestions",
    "sanitize_history",
]
