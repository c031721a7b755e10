"""
Conversational memory merge rules applied at the end of a successful turn.

Every function returns a new ConversationContext; the prior context is never mutated.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import ValidationError

from services.mood_service.models import (
    ConversationContext,
    ConversationMemory,
    CurrentPlaylist,
)
from services.mood_service.vocabulary import detect_mood_bucket
from infrastructure.monitoring.logging_service import get_logger

logger = get_logger(__name__)

BRIEF_RESPONSE_WORDS = 3


def coerce_context(raw: Any) -> Optional[ConversationContext]:
    """
    Accept a ConversationContext, a wire dict, or anything else

    Unusable values (wrong type, failed validation) mean "no prior context".
    """
    if raw is None or isinstance(raw, ConversationContext):
        return raw
    if isinstance(raw, dict):
        try:
            return ConversationContext.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed conversation context: {e.error_count()} errors")
            return None
    logger.warning(f"Ignoring conversation context of type {type(raw).__name__}")
    return None


def is_brief(message: str) -> bool:
    return len(message.split()) <= BRIEF_RESPONSE_WORDS


def _next_memory(prior: ConversationMemory, message: str, **updates) -> ConversationMemory:
    return prior.model_copy(update={
        "last_message": message,
        "message_count": prior.message_count + 1,
        "brief_response": is_brief(message),
        **updates,
    })


def merge_analysis_into_context(
    prior: Optional[ConversationContext],
    message: str,
    response: str,
    mood_analysis: str,
    genres: List[str],
    display_title: str
) -> ConversationContext:
    """
    Build the memory for the next turn after a fresh recommendation

    Activity and location carry over from the prior context; mood, preferred
    genres and the current playlist are replaced by this turn's analysis.
    """
    base = prior.model_copy(deep=True) if prior is not None else ConversationContext()
    preferences = base.user_preferences

    topic = detect_mood_bucket(message) or detect_mood_bucket(mood_analysis) or preferences.memory.current_topic
    memory = _next_memory(
        preferences.memory,
        message,
        current_topic=topic,
        has_declined_refresh=False,
        last_meaningful_response=response,
    )

    return ConversationContext(
        playlist_generated=True,
        last_response=response,
        user_preferences=preferences.model_copy(update={
            "mood": mood_analysis,
            "preferred_genres": list(genres),
            "memory": memory,
        }),
        current_playlist=CurrentPlaylist(
            genres=list(genres),
            display_title=display_title,
            created_at=datetime.now(timezone.utc).isoformat(),
        ),
    )


def acknowledge_in_context(prior: ConversationContext, message: str) -> ConversationContext:
    """
    Build the memory for a turn that keeps the current playlist

    ``last_response`` records the raw user message for this branch.
    """
    updated = prior.model_copy(deep=True)
    preferences = updated.user_preferences
    preferences.memory = _next_memory(preferences.memory, message, has_declined_refresh=True)
    updated.last_response = message
    return updated
