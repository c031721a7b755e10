"""
Fallback analysis for graceful degradation when the mood oracle fails.
"""

from typing import Any, List, Optional

from services.mood_service.conversation_memory import coerce_context
from services.mood_service.exceptions import OracleResponseInvalid, OracleUnavailable
from services.mood_service.models import ConversationContext, MoodAnalysisResult
from services.mood_service.vocabulary import DEFAULT_WEATHER_MOOD, NEUTRAL_ATTRIBUTES, filter_genres
from infrastructure.monitoring.logging_service import get_logger


FALLBACK_GENRES = ["pop", "dance"]
FALLBACK_MOOD_ANALYSIS = "Fallback due to analysis error"
FALLBACK_TITLE = "General Mix"
GENERIC_REASON = "Something went wrong"


class FallbackService:
    """
    Builds a usable analysis when a turn fails, so the user is never blocked.
    """

    def __init__(self, genres: Optional[List[str]] = None):
        self.logger = get_logger(__name__)
        self.genres = filter_genres(genres or FALLBACK_GENRES) or list(FALLBACK_GENRES)

    def describe_error(self, error: Optional[Exception]) -> str:
        """Short user-facing reason for the failure"""
        if isinstance(error, OracleResponseInvalid):
            return "I couldn't make sense of the mood analysis"
        if isinstance(error, OracleUnavailable):
            return "The mood analysis service is unavailable"
        return GENERIC_REASON

    def build_fallback(self, error: Optional[Exception] = None, prior_context: Any = None) -> MoodAnalysisResult:
        """
        Generate a fallback analysis for a failed turn

        Args:
            error: Exception that failed the turn
            prior_context: Memory from before the turn; returned unchanged

        Returns:
            MoodAnalysisResult with general-purpose genres
        """
        reason = self.describe_error(error)
        self.logger.info(f"Generated fallback analysis: {reason}", extra={
            "event_type": "fallback_analysis",
            "error_type": type(error).__name__ if error else None,
        })

        context = coerce_context(prior_context)
        return MoodAnalysisResult(
            genres=list(self.genres),
            weather_mood=DEFAULT_WEATHER_MOOD,
            response=f"I'm having trouble right now. {reason}. Let me try some general recommendations for you.",
            mood_analysis=FALLBACK_MOOD_ANALYSIS,
            display_title=FALLBACK_TITLE,
            target_attributes=NEUTRAL_ATTRIBUTES.model_copy(),
            conversation_context=context.model_copy(deep=True) if context is not None else ConversationContext(),
            should_refresh_playlist=True,
        )
