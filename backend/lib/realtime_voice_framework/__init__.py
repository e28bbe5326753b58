"""Realtime Voice Framework - Generic Infrastructure for Realtime Voice Sessions

This package contains all generic infrastructure for driving a realtime
speech-to-speech conversation with a remote agent over WebRTC. It has ZERO
dependencies on app-specific logic (interview phases, personas, scoring).

Design Philosophy:
- Framework is completely generic and reusable
- Application logic lives in `backend/app/interview/`
- Uses dependency injection (callbacks, subclass hooks, function specs) for app integration
- No direct imports from app/ - framework is self-contained

Components:
- protocol: Control-channel events and commands
- transport: Configuration, session issuer and signaling clients
- webrtc: Peer connection, data channel and local media
- session: Connection state machine and transcript assembler
- tools: Function call routing
- audio: Audio level monitor
- server: The session orchestrator

Usage:
    from lib.realtime_voice_framework import RealtimeVoiceSession, TransportConfig
"""

__version__ = "0.1.0"

from .core import ConnectionState, TranscriptEntry, TranscriptRole
from .server import RealtimeVoiceSession
from .tools import FunctionCallRouter, FunctionSpec
from .transport import IssuedSession, TransportConfig

__all__ = [
    "RealtimeVoiceSession",
    "TransportConfig",
    "IssuedSession",
    "FunctionCallRouter",
    "FunctionSpec",
    "ConnectionState",
    "TranscriptEntry",
    "TranscriptRole",
]
