"""
Session repository - key-value persistence of chat sessions.

Sessions are stored whole as JSON payloads keyed by session id; ``save`` is an
idempotent upsert where the last write wins.
"""

from typing import Dict, List, Optional
import sqlite3
import json
import os

from services.chat_service.models import ChatSession
from infrastructure.monitoring.logging_service import get_logger


class SessionRepository:
    """Interface for chat session storage"""

    def load(self, session_id: str) -> Optional[ChatSession]:
        raise NotImplementedError

    def save(self, session: ChatSession) -> None:
        raise NotImplementedError

    def list(self) -> List[ChatSession]:
        raise NotImplementedError

    def delete(self, session_id: str) -> bool:
        raise NotImplementedError


class InMemorySessionRepository(SessionRepository):
    """Process-local storage; sessions are copied in and out by value"""

    def __init__(self):
        self._sessions: Dict[str, dict] = {}

    def load(self, session_id: str) -> Optional[ChatSession]:
        data = self._sessions.get(session_id)
        return ChatSession.from_dict(data) if data is not None else None

    def save(self, session: ChatSession) -> None:
        self._sessions[session.id] = session.to_dict()

    def list(self) -> List[ChatSession]:
        sessions = [ChatSession.from_dict(data) for data in self._sessions.values()]
        # sorted() is stable, so equal created_at keeps insertion order
        return sorted(sessions, key=lambda session: session.created_at)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None


class SQLiteSessionRepository(SessionRepository):
    """
    SQLite-backed session storage that survives process restarts.
    """

    def __init__(self, db_path: str = "data/chat_sessions.db"):
        """
        Initialize session repository

        Args:
            db_path: Path to SQLite database for persistence
        """
        self.logger = get_logger(__name__)
        self.db_path = db_path
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_database(self):
        """Initialize SQLite database for chat sessions"""
        os.makedirs(os.path.dirname(self.db_path) if os.path.dirname(self.db_path) else ".", exist_ok=True)

        try:
            conn = self._connect()
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS chat_sessions (
                    session_id TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    last_updated INTEGER NOT NULL
                )
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_chat_sessions_created_at ON chat_sessions (created_at)
            ''')

            conn.commit()
            conn.close()

            self.logger.info("Session database initialized successfully")

        except sqlite3.Error as e:
            self.logger.error(f"Error initializing session database: {e}")
            raise

    def load(self, session_id: str) -> Optional[ChatSession]:
        """
        Load a session by id

        Returns:
            The stored session, or None if unknown
        """
        try:
            conn = self._connect()
            cursor = conn.cursor()
            cursor.execute('SELECT payload FROM chat_sessions WHERE session_id = ?', (session_id,))
            row = cursor.fetchone()
            conn.close()
        except sqlite3.Error as e:
            self.logger.error(f"Error loading session {session_id}: {e}")
            raise

        if row is None:
            return None
        return ChatSession.from_dict(json.loads(row[0]))

    def save(self, session: ChatSession) -> None:
        """Insert or replace a session"""
        try:
            conn = self._connect()
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO chat_sessions (session_id, payload, created_at, last_updated)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(session_id) DO UPDATE SET
                    payload = excluded.payload,
                    last_updated = excluded.last_updated
            ''', (
                session.id,
                json.dumps(session.to_dict(), ensure_ascii=False),
                session.created_at,
                session.last_updated
            ))
            conn.commit()
            conn.close()

            self.logger.debug(f"Saved session {session.id} ({len(session.messages)} messages)")

        except sqlite3.Error as e:
            self.logger.error(f"Error saving session {session.id}: {e}")
            raise

    def list(self) -> List[ChatSession]:
        """
        List all sessions, oldest first

        Returns:
            Sessions ordered by creation time, then insertion order
        """
        try:
            conn = self._connect()
            cursor = conn.cursor()
            cursor.execute('SELECT payload FROM chat_sessions ORDER BY created_at ASC, rowid ASC')
            rows = cursor.fetchall()
            conn.close()
        except sqlite3.Error as e:
            self.logger.error(f"Error listing sessions: {e}")
            raise

        return [ChatSession.from_dict(json.loads(row[0])) for row in rows]

    def delete(self, session_id: str) -> bool:
        """
        Delete a session

        Returns:
            True if a session was removed
        """
        try:
            conn = self._connect()
            cursor = conn.cursor()
            cursor.execute('DELETE FROM chat_sessions WHERE session_id = ?', (session_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            conn.close()
        except sqlite3.Error as e:
            self.logger.error(f"Error deleting session {session_id}: {e}")
            raise

        if deleted:
            self.logger.info(f"Deleted session {session_id}")
        return deleted
