"""
Mood chat service - runs one chat turn end to end.

Analyzes the user message with the session's conversational memory, then
stores the user message and the assistant reply together. Any analysis
failure degrades to a fallback analysis.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from services.chat_service.conversation_manager import ChatSessionManager
from services.chat_service.models import ChatMessage
from services.mood_service.exceptions import InvalidRequest, OracleResponseInvalid, OracleUnavailable
from services.mood_service.fallback_service import FallbackService
from services.mood_service.intent_classifier import has_positive_signal
from services.mood_service.models import ConversationContext, MoodAnalysisResult
from services.mood_service.mood_analyzer import MoodAnalyzer
from services.mood_service.response_synthesizer import REFRESH_OFFER, append_refresh_offer
from infrastructure.monitoring.logging_service import get_logger


@dataclass
class ChatTurn:
    """Outcome of one submitted message"""
    session_id: str
    user_message: ChatMessage
    assistant_message: ChatMessage
    analysis: MoodAnalysisResult
    used_fallback: bool = False


class MoodChatService:
    """
    Runs chat turns against the mood analyzer.
    Keeps one ConversationContext per session id; turns for a session are
    expected to be submitted one at a time.
    """

    def __init__(
        self,
        manager: ChatSessionManager,
        analyzer: MoodAnalyzer,
        fallback_service: Optional[FallbackService] = None,
        refresh_offer: str = REFRESH_OFFER
    ):
        self.logger = get_logger(__name__)
        self.manager = manager
        self.analyzer = analyzer
        self.fallback_service = fallback_service or FallbackService()
        self.refresh_offer = refresh_offer
        self._contexts: Dict[str, ConversationContext] = {}

    def get_context(self, session_id: str) -> Optional[ConversationContext]:
        context = self._contexts.get(session_id)
        return context.model_copy(deep=True) if context is not None else None

    def reset_context(self, session_id: str) -> None:
        self._contexts.pop(session_id, None)

    def delete_session(self, session_id: str) -> bool:
        self.reset_context(session_id)
        return self.manager.delete_session(session_id)

    def cleanup_old_sessions(self, now: Optional[int] = None) -> int:
        """Run the retention sweep and drop memory held for sessions that no longer exist"""
        removed = self.manager.cleanup_old_sessions(now)

        live_ids = {session.id for session in self.manager.list_sessions()}
        for session_id in [sid for sid in self._contexts if sid not in live_ids]:
            del self._contexts[session_id]

        return removed

    def submit(self, text: str, auth_token: Optional[str] = None, session_id: Optional[str] = None) -> ChatTurn:
        """
        Submit a user message

        Args:
            text: Raw user input
            auth_token: Spotify access token for track recommendations
            session_id: Target session; defaults to the current session

        Returns:
            ChatTurn with both stored messages and the analysis

        Raises:
            InvalidRequest: If the message is empty
            KeyError: If the session does not exist
        """
        text = text.strip() if isinstance(text, str) else ""
        if not text:
            raise InvalidRequest("Message is required")

        if session_id is None:
            session_id = self.manager.get_current_session().id
        elif self.manager.get_session(session_id) is None:
            raise KeyError(f"Session not found: {session_id}")

        prior = self._contexts.get(session_id)

        try:
            analysis = self.analyzer.analyze(text, prior, auth_token)
            used_fallback = False
        except InvalidRequest:
            raise
        except (OracleUnavailable, OracleResponseInvalid) as e:
            self.logger.error(f"Mood analysis failed for session {session_id}: {e.__class__.__name__}: {e}")
            analysis = self.fallback_service.build_fallback(e, prior)
            used_fallback = True
        except Exception as e:
            self.logger.error(
                f"Unexpected mood analysis error for session {session_id}: {e.__class__.__name__}: {e}",
                exc_info=True
            )
            analysis = self.fallback_service.build_fallback(e, prior)
            used_fallback = True

        reply = analysis.response
        if self._should_offer_refresh(text, analysis, prior, used_fallback):
            reply = append_refresh_offer(reply, self.refresh_offer)

        # Both messages go out in one write so a failed save leaves no orphan user message
        user_message, assistant_message = self.manager.append_messages(
            session_id, [("user", text), ("assistant", reply)]
        )
        if not used_fallback:
            self._contexts[session_id] = analysis.conversation_context

        return ChatTurn(
            session_id=session_id,
            user_message=user_message,
            assistant_message=assistant_message,
            analysis=analysis,
            used_fallback=used_fallback
        )

    @staticmethod
    def _should_offer_refresh(
        text: str,
        analysis: MoodAnalysisResult,
        prior: Optional[ConversationContext],
        used_fallback: bool
    ) -> bool:
        if used_fallback or not analysis.should_refresh_playlist or not analysis.genres:
            return False
        if has_positive_signal(text):
            return False
        if prior is not None and prior.user_preferences.memory.has_declined_refresh:
            return False
        return True
