"""Core types and abstractions for the realtime voice framework."""

from .bus import EventBus, invoke
from .errors import (
    CredentialMissingError,
    MediaAcquisitionError,
    NegotiationError,
    PersistenceError,
    PreconditionError,
    ProtocolDecodeError,
    ProtocolError,
    RealtimeError,
    SessionIssuerError,
)
from .types import LIVE_STATES, ConnectionState, TranscriptEntry, TranscriptRole

__all__ = [
    "EventBus",
    "invoke",
    "ConnectionState",
    "LIVE_STATES",
    "TranscriptEntry",
    "TranscriptRole",
    "RealtimeError",
    "PreconditionError",
    "CredentialMissingError",
    "SessionIssuerError",
    "MediaAcquisitionError",
    "NegotiationError",
    "ProtocolError",
    "ProtocolDecodeError",
    "PersistenceError",
]
