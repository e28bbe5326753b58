"""
Local media: microphone capture and playback of the agent's audio.

Both sides are built on aiortc.contrib.media so that any input/output
FFmpeg understands (PulseAudio, ALSA, AVFoundation, DirectShow, files)
can be used.
"""

import logging
import sys
from typing import Optional, Tuple, Union

from aiortc.contrib.media import MediaBlackhole, MediaPlayer, MediaRecorder

from ..core.errors import MediaAcquisitionError
from ..transport.base import TransportConfig

logger = logging.getLogger(__name__)

PlaybackSink = Union[MediaRecorder, MediaBlackhole]


def default_microphone() -> Tuple[str, str]:
    """Platform default capture device and FFmpeg input format."""
    if sys.platform == "darwin":
        return ":0", "avfoundation"
    if sys.platform.startswith("win"):
        return "audio=Microphone", "dshow"
    return "default", "pulse"


class MediaFactory:
    """Opens the microphone source and the playback sink."""

    def __init__(self, config: Optional[TransportConfig] = None):
        self.config = config or TransportConfig()

    def open_microphone(self) -> MediaPlayer:
        """
        Open the capture device.

        Raises:
            MediaAcquisitionError: Device missing, permission denied, or no audio track
        """
        device, fmt = default_microphone()
        if self.config.mic_device:
            device = self.config.mic_device
            fmt = self.config.mic_format
        elif self.config.mic_format:
            fmt = self.config.mic_format

        logger.info(f"🎙️ Opening microphone {device} (format={fmt})")
        try:
            player = MediaPlayer(device, format=fmt, options=self.config.mic_options or None)
        except Exception as e:
            raise MediaAcquisitionError(f"Microphone unavailable: {e}") from e

        if player.audio is None:
            raise MediaAcquisitionError(f"No audio track on {device}")
        return player

    def open_playback(self) -> PlaybackSink:
        """Sink for the remote audio track; discards audio if no device is configured."""
        if not self.config.playback_device:
            logger.info("🔇 No playback device configured, remote audio will be discarded")
            return MediaBlackhole()

        logger.info(
            f"🔊 Playing remote audio to {self.config.playback_device} "
            f"(format={self.config.playback_format})"
        )
        try:
            return MediaRecorder(self.config.playback_device, format=self.config.playback_format)
        except Exception as e:
            raise MediaAcquisitionError(f"Playback device unavailable: {e}") from e
