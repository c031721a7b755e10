"""
Chat session manager - handles session lifecycle and the current-session pointer.
"""

from typing import Callable, List, Optional, Sequence, Tuple
import uuid

from config.app_config import get_config
from services.chat_service.models import ChatMessage, ChatSession, now_ms
from services.chat_service.session_repository import SessionRepository
from infrastructure.monitoring.logging_service import get_logger, log_session_event

DAY_MS = 24 * 60 * 60 * 1000


def default_welcome_message() -> ChatMessage:
    """Welcome message used to seed a brand-new session"""
    return ChatMessage(role="assistant", content=get_config().ui.welcome_message)


class ChatSessionManager:
    """
    Service for managing chat sessions.
    Handles session creation, switching, deletion and the retention sweep.
    """

    def __init__(
        self,
        repository: SessionRepository,
        welcome_message_factory: Optional[Callable[[], ChatMessage]] = None,
        retention_days: int = 7
    ):
        """
        Initialize the session manager

        Args:
            repository: Session storage
            welcome_message_factory: Builds the first message of a new session
            retention_days: Age after which non-current sessions are swept
        """
        self.logger = get_logger(__name__)
        self.repository = repository
        self.welcome_message_factory = welcome_message_factory or default_welcome_message
        self.retention_days = retention_days
        self.current_session_id: Optional[str] = None

    def initialize(self) -> str:
        """
        Load stored sessions; the most recent becomes current, or a new one is created

        Returns:
            Current session id
        """
        sessions = self.repository.list()
        if sessions:
            self.current_session_id = sessions[-1].id
            self.logger.info(f"Loaded {len(sessions)} sessions, current: {self.current_session_id}")
            return self.current_session_id

        return self.create_new_session()

    def create_new_session(self) -> str:
        """
        Create a new session seeded with the welcome message; it becomes current

        Returns:
            New session id
        """
        welcome = self.welcome_message_factory()
        created = now_ms()
        session = ChatSession(
            id=str(uuid.uuid4()),
            messages=[welcome],
            created_at=created,
            last_updated=created
        )
        self.repository.save(session)
        self.current_session_id = session.id

        log_session_event(self.logger, "created", session.id)
        return session.id

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        return self.repository.load(session_id)

    def _require_session(self, session_id: str) -> ChatSession:
        session = self.repository.load(session_id)
        if session is None:
            raise KeyError(f"Session not found: {session_id}")
        return session

    def get_current_session(self) -> ChatSession:
        """Get the current session, creating one if there is none"""
        if self.current_session_id is None:
            self.initialize()

        session = self.repository.load(self.current_session_id)
        if session is None:
            self.logger.warning(f"Current session {self.current_session_id} disappeared, creating a new one")
            session = self._require_session(self.create_new_session())
        return session

    def set_current_session(self, session_id: str) -> None:
        """
        Switch the current session

        Raises:
            KeyError: If the session does not exist
        """
        self._require_session(session_id)
        self.current_session_id = session_id
        self.logger.info(f"Switched to session: {session_id}")

    def list_sessions(self) -> List[ChatSession]:
        return self.repository.list()

    def append_message(self, session_id: str, role: str, content: str) -> ChatMessage:
        """
        Append a message to a session and persist it

        Returns:
            The stored message
        """
        session = self._require_session(session_id)
        message = session.append(ChatMessage(role=role, content=content))
        self.repository.save(session)

        self.logger.debug(f"Added {role} message to session {session_id}")
        return message

    def append_messages(self, session_id: str, entries: Sequence[Tuple[str, str]]) -> List[ChatMessage]:
        """
        Append several (role, content) messages with a single write

        Nothing is stored when the write fails, so a session never keeps half a turn.

        Returns:
            The stored messages, in order
        """
        session = self._require_session(session_id)
        messages = [session.append(ChatMessage(role=role, content=content)) for role, content in entries]
        self.repository.save(session)

        self.logger.debug(f"Added {len(messages)} messages to session {session_id}")
        return messages

    def update_session(self, session_id: str, messages: Sequence[ChatMessage]) -> bool:
        """
        Replace a session's messages

        Returns:
            False when the messages are unchanged and nothing was written
        """
        session = self._require_session(session_id)
        messages = list(messages)
        if session.messages == messages:
            return False
        if not messages:
            raise ValueError("A session always keeps at least one message")

        session.messages = messages
        session.last_updated = max(now_ms(), messages[-1].timestamp)
        self.repository.save(session)
        return True

    def delete_session(self, session_id: str) -> bool:
        """
        Delete a session; deleting the current one switches to the most
        recent remaining session or creates a fresh one

        Returns:
            True if the session existed
        """
        if not self.repository.delete(session_id):
            return False

        log_session_event(self.logger, "deleted", session_id)

        if self.current_session_id == session_id:
            remaining = self.repository.list()
            if remaining:
                self.current_session_id = remaining[-1].id
            else:
                self.create_new_session()

        return True

    def cleanup_old_sessions(self, now: Optional[int] = None) -> int:
        """
        Remove sessions older than the retention window, except the current one

        Args:
            now: Reference time in epoch milliseconds

        Returns:
            Number of sessions removed
        """
        now = now_ms() if now is None else now
        max_age = self.retention_days * DAY_MS
        removed = 0

        for session in self.repository.list():
            if session.id == self.current_session_id:
                continue
            if now - session.created_at >= max_age and self.repository.delete(session.id):
                removed += 1

        if removed:
            self.logger.info(f"Retention sweep removed {removed} sessions")
        return removed
