from .realtime_session import RealtimeVoiceSession

__all__ = ["RealtimeVoiceSession"]
