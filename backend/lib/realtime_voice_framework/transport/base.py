"""
Configuration and shared types for the remote speech service transport.

The client talks to two HTTP endpoints before media flows: a session
issuer (our own backend, which mints a short-lived credential) and the
remote service's signaling endpoint (SDP offer/answer exchange).
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class TransportConfig:
    """Configuration for a realtime voice connection."""
    # Endpoints
    issuer_url: str = "http://localhost:8000/api/mock/realtime/session"
    signaling_url: str = "https://api.openai.com/v1/realtime/calls"
    model: Optional[str] = None  # Appended as ?model= when set

    # Control channel
    channel_label: str = "oai-events"

    # Timeouts (seconds)
    ice_gathering_timeout: float = 5.0
    channel_open_timeout: float = 15.0
    greeting_delay: float = 0.5  # Lets session.update settle before the greeting
    http_timeout: float = 30.0

    # Local media (None = platform default / discard)
    mic_device: Optional[str] = None
    mic_format: Optional[str] = None
    mic_options: Dict[str, str] = field(default_factory=dict)
    playback_device: Optional[str] = None
    playback_format: Optional[str] = None

    # Session settings
    transcription_model: str = "whisper-1"
    temperature: float = 0.7

    # Audio level monitor
    level_gain: float = 4.0

    @classmethod
    def from_env(cls, **overrides: Any) -> "TransportConfig":
        """
        Build a config from REALTIME_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        env = os.environ
        values: Dict[str, Any] = {}

        string_keys = {
            "issuer_url": "REALTIME_ISSUER_URL",
            "signaling_url": "REALTIME_SIGNALING_URL",
            "model": "REALTIME_MODEL",
            "mic_device": "REALTIME_MIC_DEVICE",
            "mic_format": "REALTIME_MIC_FORMAT",
            "playback_device": "REALTIME_PLAYBACK_DEVICE",
            "playback_format": "REALTIME_PLAYBACK_FORMAT",
            "transcription_model": "REALTIME_TRANSCRIPTION_MODEL",
        }
        float_keys = {
            "ice_gathering_timeout": "REALTIME_ICE_GATHERING_TIMEOUT",
            "channel_open_timeout": "REALTIME_CHANNEL_OPEN_TIMEOUT",
            "greeting_delay": "REALTIME_GREETING_DELAY",
            "http_timeout": "REALTIME_HTTP_TIMEOUT",
            "temperature": "REALTIME_TEMPERATURE",
            "level_gain": "REALTIME_LEVEL_GAIN",
        }

        for attr, var in string_keys.items():
            if env.get(var):
                values[attr] = env[var]
        for attr, var in float_keys.items():
            if env.get(var):
                try:
                    values[attr] = float(env[var])
                except ValueError:
                    raise ValueError(f"{var} must be a number, got {env[var]!r}")

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def signaling_endpoint(self) -> str:
        """Signaling URL with the model selector applied."""
        if not self.model:
            return self.signaling_url
        separator = "&" if "?" in self.signaling_url else "?"
        return f"{self.signaling_url}{separator}model={self.model}"


@dataclass
class IssuedSession:
    """Result of asking the issuer for a session credential."""
    token: str
    voice: Optional[str] = None
    instructions: Optional[str] = None
    greeting_instruction: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, body: Dict[str, Any]) -> "IssuedSession":
        """
        Parse an issuer response.

        Accepts both `{"data": {...}}` envelopes and flat bodies. The token
        may be empty; callers check it.
        """
        data = body.get("data") if isinstance(body.get("data"), dict) else body
        config = data.get("config") or {}
        token = data.get("token") or ""
        if isinstance(token, dict):
            token = token.get("value") or ""
        return cls(
            token=token,
            voice=data.get("voice"),
            instructions=config.get("instructions") or data.get("instructions"),
            greeting_instruction=(
                config.get("greetingInstruction") or data.get("greetingInstruction")
            ),
            metadata={k: v for k, v in data.items() if k not in ("token", "voice", "config")},
        )
