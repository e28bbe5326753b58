"""Control-channel protocol: inbound events and outbound commands."""

from .commands import (
    build_session_config,
    default_turn_detection,
    encode_command,
    function_call_output,
    response_cancel,
    response_create,
    session_update,
)
from .events import (
    AgentTranscriptDone,
    AudioChunk,
    AudioDone,
    ErrorEvent,
    FunctionCallArgumentsDone,
    RateLimitsUpdated,
    ResponseCreated,
    ResponseDone,
    ServerEvent,
    SessionCreated,
    SessionUpdated,
    SpeechStarted,
    SpeechStopped,
    UnknownEvent,
    UserTranscriptDone,
    parse_server_event,
)

__all__ = [
    # Commands
    "build_session_config",
    "default_turn_detection",
    "encode_command",
    "function_call_output",
    "response_cancel",
    "response_create",
    "session_update",
    # Events
    "ServerEvent",
    "SessionCreated",
    "SessionUpdated",
    "SpeechStarted",
    "SpeechStopped",
    "ResponseCreated",
    "ResponseDone",
    "AudioChunk",
    "AudioDone",
    "AgentTranscriptDone",
    "UserTranscriptDone",
    "FunctionCallArgumentsDone",
    "RateLimitsUpdated",
    "ErrorEvent",
    "UnknownEvent",
    "parse_server_event",
]
