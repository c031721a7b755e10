"""
Chat service - chat sessions, their persistence, and mood chat turns.
"""

from .models import ChatMessage, ChatSession
from .session_repository import SessionRepository, InMemorySessionRepository, SQLiteSessionRepository
from .conversation_manager import ChatSessionManager, default_welcome_message
from .mood_chat import MoodChatService, ChatTurn

__all__ = [
    'ChatMessage',
    'ChatSession',
    'SessionRepository',
    'InMemorySessionRepository',
    'SQLiteSessionRepository',
    'ChatSessionManager',
    'default_welcome_message',
    'MoodChatService',
    'ChatTurn'
]
