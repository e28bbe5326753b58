"""Transport configuration and HTTP clients for session setup."""

from .base import IssuedSession, TransportConfig
from .http import SessionIssuerClient, SignalingClient

__all__ = [
    "TransportConfig",
    "IssuedSession",
    "SessionIssuerClient",
    "SignalingClient",
]
