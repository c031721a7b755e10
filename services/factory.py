"""
Wiring of the mood chat stack from configuration.

Collaborators are built once per process and passed in explicitly.
"""

from typing import Callable, Optional

from config.app_config import AppConfig, get_config
from infrastructure.external.openai_client import create_openai_client
from infrastructure.external.spotify_client import SpotifyRecommender
from infrastructure.monitoring.logging_service import initialize_logging
from services.chat_service.conversation_manager import ChatSessionManager
from services.chat_service.mood_chat import MoodChatService
from services.chat_service.models import ChatMessage
from services.chat_service.session_repository import SQLiteSessionRepository
from services.mood_service.fallback_service import FallbackService
from services.mood_service.mood_analyzer import MoodAnalyzer


def create_mood_analyzer(
    config: Optional[AppConfig] = None,
    token_refresher: Optional[Callable[[], Optional[str]]] = None
) -> MoodAnalyzer:
    """Build the analyzer with the OpenAI oracle and the Spotify recommender"""
    config = config or get_config()
    return MoodAnalyzer(
        oracle=create_openai_client(config),
        recommender=SpotifyRecommender.from_config(config.recommender, token_refresher),
        mood_config=config.mood
    )


def create_mood_chat_service(
    config: Optional[AppConfig] = None,
    analyzer: Optional[MoodAnalyzer] = None
) -> MoodChatService:
    """Build a chat service backed by the SQLite session store; configures logging first"""
    config = config or get_config()
    initialize_logging(config)

    manager = ChatSessionManager(
        SQLiteSessionRepository(config.sessions.db_path),
        welcome_message_factory=lambda: ChatMessage(role="assistant", content=config.ui.welcome_message),
        retention_days=config.sessions.retention_days
    )
    manager.initialize()
    return MoodChatService(
        manager,
        analyzer or create_mood_analyzer(config),
        FallbackService(config.ui.fallback_genres),
        refresh_offer=config.ui.refresh_offer
    )
