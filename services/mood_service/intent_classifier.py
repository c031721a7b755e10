"""
Intent classification: decide whether a user turn asks for a new recommendation set.
"""

from typing import Optional

from services.mood_service.models import ConversationContext, UserIntent


NEGATIVE_SIGNALS = (
    "no need",
    "i am ok",
    "i'm ok",
    "no thanks",
    "stop",
    "dont change",
    "don't change",
    "no thank you",
    "please don't",
    "keep it",
)

# No entry may be a substring of a negative phrase
POSITIVE_SIGNALS = (
    "refresh",
    "new songs",
    "different",
    "differnt",
    "something else",
    "another playlist",
    "new playlist",
    "change it please",
    "switch it up",
)


def _normalize(message) -> str:
    if not isinstance(message, str):
        return ""
    return message.lower().replace("’", "'")


def has_negative_signal(message: str) -> bool:
    lowered = _normalize(message)
    return any(signal in lowered for signal in NEGATIVE_SIGNALS)


def has_positive_signal(message: str) -> bool:
    lowered = _normalize(message)
    return any(signal in lowered for signal in POSITIVE_SIGNALS)


def has_existing_playlist(context: Optional[ConversationContext]) -> bool:
    if context is None:
        return False
    return context.playlist_generated or context.current_playlist is not None


def classify_intent(
    message: str,
    prior_context: Optional[ConversationContext] = None,
    refresh_on_neutral: bool = True
) -> UserIntent:
    """
    Classify a user message against the prior conversational context

    Args:
        message: Raw user text
        prior_context: Memory from the previous turn, if any
        refresh_on_neutral: Verdict for turns with neither signal when a
            playlist already exists

    Returns:
        UserIntent verdict; ``should_respond`` is always True
    """
    if has_positive_signal(message):
        return UserIntent(wants_new_recommendation=True)

    if not has_existing_playlist(prior_context):
        return UserIntent(wants_new_recommendation=True)

    if has_negative_signal(message):
        return UserIntent(wants_new_recommendation=False)

    return UserIntent(wants_new_recommendation=refresh_on_neutral)
