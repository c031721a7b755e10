"""
Response synthesis: pick the reply text for a turn and avoid repeating refresh offers.
"""

import re
from typing import Optional

from services.mood_service.models import ConversationContext, UserIntent


KEEP_PLAYLIST_ACKNOWLEDGEMENT = (
    "Got it, I'll keep the current playlist playing. "
    "Let me know if you want to try something different later!"
)
CLOSING_LINE = "Enjoy the music!"
REFRESH_OFFER = (
    "Would you like me to refresh the playlist with different songs in this style? "
    "Just ask me to refresh or try something new!"
)

_REFRESH_OFFER_PATTERN = re.compile(r"Would you like me to refresh.*$", re.IGNORECASE | re.DOTALL)


def synthesize_response(
    intent: UserIntent,
    oracle_response: str,
    prior_context: Optional[ConversationContext] = None
) -> str:
    """
    Decide the literal reply text for a turn

    Args:
        intent: Verdict from the intent classifier
        oracle_response: Reply text proposed by the oracle
        prior_context: Memory from the previous turn, if any

    Returns:
        Reply text to surface to the user
    """
    has_playlist = prior_context is not None and prior_context.playlist_generated

    if not intent.wants_new_recommendation and has_playlist:
        return KEEP_PLAYLIST_ACKNOWLEDGEMENT

    if prior_context is not None and "refresh" in (prior_context.last_response or ""):
        return _REFRESH_OFFER_PATTERN.sub(CLOSING_LINE, oracle_response)

    return oracle_response


def append_refresh_offer(text: str, offer: str = REFRESH_OFFER) -> str:
    """Append the refresh offer after a blank line unless it is already there"""
    if offer in text:
        return text
    return f"{text}\n\n{offer}"
