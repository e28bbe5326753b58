"""
Core types and data structures for the realtime voice framework.

These types are shared by the connection manager, the session state
machine and the transcript assembler.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ConnectionState(Enum):
    """Connection / activity state of a realtime session."""
    IDLE = "idle"
    CONNECTING = "connecting"
    READY = "ready"
    SPEAKING = "speaking"        # Remote agent audio is playing
    LISTENING = "listening"      # User speech detected
    THINKING = "thinking"        # Remote agent is preparing a response
    INTERRUPTED = "interrupted"  # Caller cancelled the agent's response
    COMPLETED = "completed"


# States in which live transport handles may exist
LIVE_STATES = frozenset({
    ConnectionState.CONNECTING,
    ConnectionState.READY,
    ConnectionState.SPEAKING,
    ConnectionState.LISTENING,
    ConnectionState.THINKING,
    ConnectionState.INTERRUPTED,
})


class TranscriptRole(Enum):
    """Speaker of a transcript entry."""
    USER = "user"
    AGENT = "agent"


@dataclass(frozen=True)
class TranscriptEntry:
    """
    A single finalized utterance.

    Entries are immutable once appended to the transcript.
    """
    role: TranscriptRole
    text: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }
