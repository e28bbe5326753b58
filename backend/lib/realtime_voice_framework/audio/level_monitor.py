"""
Audio level monitor.

Drives two 0-1 signals for the caller:
- user level: RMS of the local microphone, sampled on every captured frame
- agent level: coarse proxy set on each inbound audio chunk and dropped
  to zero when the agent's audio finishes
"""

import asyncio
import logging
import random
from typing import Any, Callable, Optional

import numpy as np

from ..protocol.events import AudioChunk, AudioDone, ResponseDone

logger = logging.getLogger(__name__)


def calculate_level(samples: np.ndarray, gain: float = 4.0) -> float:
    """
    Normalized loudness of a block of samples.

    Integer PCM is scaled by its dtype's full range; float samples are
    assumed to be in [-1, 1]. Speech RMS sits well below full scale, so
    `gain` lifts it into a useful 0-1 range.

    Args:
        samples: Audio samples (any shape, any channel layout)
        gain: Multiplier applied to the normalized RMS

    Returns:
        Level clipped to [0.0, 1.0]
    """
    if samples is None or samples.size == 0:
        return 0.0

    data = samples.astype(np.float64)
    if np.issubdtype(samples.dtype, np.integer):
        data /= float(np.iinfo(samples.dtype).max)

    rms = float(np.sqrt(np.mean(data ** 2)))
    if not np.isfinite(rms):
        return 0.0
    return float(np.clip(rms * gain, 0.0, 1.0))


class AudioLevelMonitor:
    """Sampling loop over the local track plus the agent-level proxy."""

    def __init__(
        self,
        gain: float = 4.0,
        on_level: Optional[Callable[[float, float], Any]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.gain = gain
        self.user_level = 0.0
        self.ai_level = 0.0
        self._on_level = on_level
        self._rng = rng or random.Random()
        self._track = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, track) -> None:
        """Start sampling `track` (a MediaStreamTrack-like object with `recv()`)."""
        if track is None:
            logger.warning("⚠️ No local track to monitor, user level stays at 0")
            return
        if self.running:
            self.stop()
        self._track = track
        self._task = asyncio.ensure_future(self._run(track))

    async def _run(self, track) -> None:
        frames = 0
        try:
            while True:
                frame = await track.recv()
                self.user_level = calculate_level(frame.to_ndarray(), self.gain)
                frames += 1
                self._notify()
        except Exception as e:
            # MediaStreamError when the source ends
            logger.info(f"Level monitor stopped after {frames} frames ({type(e).__name__})")
        finally:
            self.user_level = 0.0

    def handle(self, event: Any) -> None:
        """Update the agent level from inbound events."""
        if isinstance(event, AudioChunk):
            self.ai_level = 0.3 + self._rng.random() * 0.5
            self._notify()
        elif isinstance(event, (AudioDone, ResponseDone)):
            if self.ai_level:
                self.ai_level = 0.0
                self._notify()

    def stop(self) -> None:
        """Halt sampling and zero both levels. Safe to call repeatedly."""
        task, track = self._task, self._track
        self._task = None
        self._track = None
        if task is not None and not task.done():
            task.cancel()
        if track is not None:
            track.stop()
        self.user_level = 0.0
        self.ai_level = 0.0

    def _notify(self) -> None:
        if self._on_level is not None:
            self._on_level(self.user_level, self.ai_level)
