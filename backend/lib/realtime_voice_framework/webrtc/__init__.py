from .manager import RealtimeConnectionManager
from .media import MediaFactory, default_microphone

__all__ = ["RealtimeConnectionManager", "MediaFactory", "default_microphone"]
