"""
Chat service data models for sessions and messages.
"""

import time
from dataclasses import dataclass, field
from typing import List, Dict, Any

ROLES = ("user", "assistant")


def now_ms() -> int:
    """Current time in epoch milliseconds"""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ChatMessage:
    """Individual conversational turn; immutable once created"""
    role: str  # "user" or "assistant"
    content: str
    timestamp: int = field(default_factory=now_ms)

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Invalid message role: {self.role}")

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChatMessage':
        return cls(role=data["role"], content=data["content"], timestamp=int(data["timestamp"]))


@dataclass
class ChatSession:
    """Ordered conversation thread; messages are only ever appended"""
    id: str
    messages: List[ChatMessage] = field(default_factory=list)
    created_at: int = field(default_factory=now_ms)
    last_updated: int = field(default_factory=now_ms)

    def append(self, message: ChatMessage) -> ChatMessage:
        """
        Append a message, keeping timestamps non-decreasing

        Returns:
            The stored message (re-stamped if its clock ran behind the log)
        """
        if self.messages and message.timestamp < self.messages[-1].timestamp:
            message = ChatMessage(message.role, message.content, self.messages[-1].timestamp)
        self.messages.append(message)
        self.last_updated = max(self.last_updated, message.timestamp, now_ms())
        return message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "messages": [message.to_dict() for message in self.messages],
            "createdAt": self.created_at,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChatSession':
        return cls(
            id=str(data["id"]),
            messages=[ChatMessage.from_dict(item) for item in data.get("messages", [])],
            created_at=int(data["createdAt"]),
            last_updated=int(data["lastUpdated"]),
        )
