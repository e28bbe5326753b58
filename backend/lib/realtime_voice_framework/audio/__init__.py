from .level_monitor import AudioLevelMonitor, calculate_level

__all__ = ["AudioLevelMonitor", "calculate_level"]
