"""
Error taxonomy for realtime voice sessions.

Precondition and negotiation failures are fatal to a connect attempt.
Protocol errors are surfaced to the caller but leave the connection up.
"""

from typing import Optional


class RealtimeError(Exception):
    """Base class for all realtime session errors."""


class PreconditionError(RealtimeError):
    """A connect() precondition was not met (credential, device, issuer)."""


class CredentialMissingError(PreconditionError):
    """The session issuer answered without a short-lived credential."""


class SessionIssuerError(PreconditionError):
    """The session issuer could not be reached or refused the request."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MediaAcquisitionError(PreconditionError):
    """The local microphone could not be opened (permission or no device)."""


class NegotiationError(RealtimeError):
    """Offer/answer exchange or transport setup failed."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class ProtocolError(RealtimeError):
    """An `error` event reported by the remote service. Not fatal."""

    def __init__(self, message: str, code: Optional[str] = None, error_type: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.error_type = error_type


class ProtocolDecodeError(RealtimeError):
    """An inbound control-channel frame was not valid JSON or had no type."""


class PersistenceError(RealtimeError):
    """The persistence backend rejected or failed a tool-response call."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
