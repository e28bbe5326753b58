"""
Inbound control-channel events.

Every JSON frame received on the data channel is decoded into one of the
closed set of event classes below. Frames with an unrecognized `type`
become `UnknownEvent` so that new server event kinds never break a
session.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Type, Union

from ..core.errors import ProtocolDecodeError


@dataclass(frozen=True)
class ServerEvent:
    """Base class for decoded inbound events."""
    type: str
    event_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # Wire names handled by this class (beta and GA spellings)
    WIRE_TYPES = ()

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ServerEvent":
        return cls(type=payload["type"], event_id=payload.get("event_id"), raw=payload)


@dataclass(frozen=True)
class SessionCreated(ServerEvent):
    WIRE_TYPES = ("session.created",)


@dataclass(frozen=True)
class SessionUpdated(ServerEvent):
    WIRE_TYPES = ("session.updated",)


@dataclass(frozen=True)
class SpeechStarted(ServerEvent):
    """User started speaking (server VAD)."""
    WIRE_TYPES = ("input_audio_buffer.speech_started",)


@dataclass(frozen=True)
class SpeechStopped(ServerEvent):
    """User stopped speaking; the agent will process the turn."""
    WIRE_TYPES = ("input_audio_buffer.speech_stopped",)


@dataclass(frozen=True)
class ResponseCreated(ServerEvent):
    WIRE_TYPES = ("response.created",)


@dataclass(frozen=True)
class ResponseDone(ServerEvent):
    WIRE_TYPES = ("response.done",)


@dataclass(frozen=True)
class AudioChunk(ServerEvent):
    """The agent produced a chunk of audio."""
    WIRE_TYPES = (
        "response.audio.delta",
        "response.output_audio.delta",
        "output_audio_buffer.started",
    )


@dataclass(frozen=True)
class AudioDone(ServerEvent):
    WIRE_TYPES = (
        "response.audio.done",
        "response.output_audio.done",
        "output_audio_buffer.stopped",
    )


@dataclass(frozen=True)
class AgentTranscriptDone(ServerEvent):
    """Final transcript of what the agent said."""
    transcript: str = ""
    item_id: Optional[str] = None

    WIRE_TYPES = (
        "response.audio_transcript.done",
        "response.output_audio_transcript.done",
    )

    @classmethod
    def from_payload(cls, payload):
        return cls(
            type=payload["type"],
            event_id=payload.get("event_id"),
            raw=payload,
            transcript=payload.get("transcript") or "",
            item_id=payload.get("item_id"),
        )


@dataclass(frozen=True)
class UserTranscriptDone(ServerEvent):
    """Final transcript of what the user said."""
    transcript: str = ""
    item_id: Optional[str] = None

    WIRE_TYPES = ("conversation.item.input_audio_transcription.completed",)

    @classmethod
    def from_payload(cls, payload):
        return cls(
            type=payload["type"],
            event_id=payload.get("event_id"),
            raw=payload,
            transcript=payload.get("transcript") or "",
            item_id=payload.get("item_id"),
        )


@dataclass(frozen=True)
class FunctionCallArgumentsDone(ServerEvent):
    """The agent finished emitting a function call."""
    call_id: str = ""
    name: str = ""
    arguments: str = "{}"

    WIRE_TYPES = ("response.function_call_arguments.done",)

    @classmethod
    def from_payload(cls, payload):
        return cls(
            type=payload["type"],
            event_id=payload.get("event_id"),
            raw=payload,
            call_id=payload.get("call_id") or "",
            name=payload.get("name") or "",
            arguments=payload.get("arguments") or "{}",
        )


@dataclass(frozen=True)
class RateLimitsUpdated(ServerEvent):
    WIRE_TYPES = ("rate_limits.updated",)


@dataclass(frozen=True)
class ErrorEvent(ServerEvent):
    message: str = ""
    code: Optional[str] = None
    error_type: Optional[str] = None

    WIRE_TYPES = ("error",)

    @classmethod
    def from_payload(cls, payload):
        error = payload.get("error") or {}
        if not isinstance(error, dict):
            error = {"message": str(error)}
        return cls(
            type=payload["type"],
            event_id=payload.get("event_id"),
            raw=payload,
            message=error.get("message") or "Unknown error",
            code=error.get("code"),
            error_type=error.get("type"),
        )


@dataclass(frozen=True)
class UnknownEvent(ServerEvent):
    """Any event kind this client does not handle."""


EVENT_CLASSES: Tuple[Type[ServerEvent], ...] = (
    SessionCreated,
    SessionUpdated,
    SpeechStarted,
    SpeechStopped,
    ResponseCreated,
    ResponseDone,
    AudioChunk,
    AudioDone,
    AgentTranscriptDone,
    UserTranscriptDone,
    FunctionCallArgumentsDone,
    RateLimitsUpdated,
    ErrorEvent,
)

_REGISTRY: Dict[str, Type[ServerEvent]] = {
    wire_type: event_cls
    for event_cls in EVENT_CLASSES
    for wire_type in event_cls.WIRE_TYPES
}


def parse_server_event(raw: Union[str, bytes, Dict[str, Any]]) -> ServerEvent:
    """
    Decode one control-channel frame.

    Args:
        raw: JSON text (or bytes) as received, or an already-decoded dict

    Returns:
        The matching event instance, or UnknownEvent

    Raises:
        ProtocolDecodeError: If the frame is not a JSON object with a type
    """
    if isinstance(raw, (str, bytes)):
        try:
            payload = json.loads(raw)
        except ValueError as e:
            raise ProtocolDecodeError(f"Invalid JSON frame: {e}") from e
    else:
        payload = raw

    if not isinstance(payload, dict) or not isinstance(payload.get("type"), str):
        raise ProtocolDecodeError("Frame is missing a string 'type' field")

    event_cls = _REGISTRY.get(payload["type"], UnknownEvent)
    return event_cls.from_payload(payload)
