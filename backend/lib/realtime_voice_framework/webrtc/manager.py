import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from aiortc import RTCPeerConnection, RTCSessionDescription
from aiortc.contrib.media import MediaRelay

from ..core.bus import invoke
from ..protocol.commands import encode_command
from ..transport.base import TransportConfig
from ..transport.http import SignalingClient
from .media import MediaFactory

logger = logging.getLogger(__name__)

FAILED_CONNECTION_STATES = ("failed", "disconnected")


class RealtimeConnectionManager:
    """
    Owns the live resources of one realtime connection.

    The microphone is fanned out through a MediaRelay so that the peer
    connection and the level monitor each get their own consumer. All
    handles are released synchronously by `release()`; the asynchronous
    part of closing is returned to the caller.
    """

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        signaling: Optional[SignalingClient] = None,
        media: Optional[MediaFactory] = None,
        peer_connection_factory: Callable[[], Any] = RTCPeerConnection,
    ):
        self.config = config or TransportConfig()
        self.signaling = signaling or SignalingClient(self.config)
        self.media = media or MediaFactory(self.config)
        self._pc_factory = peer_connection_factory

        self.pc = None
        self.channel = None
        self.player = None
        self.sink = None
        self._relay: Optional[MediaRelay] = None
        self._gathering: Optional[asyncio.Future] = None

    @property
    def is_open(self) -> bool:
        return self.channel is not None and self.channel.readyState == "open"

    def acquire_media(self) -> None:
        """Open the microphone. Raises MediaAcquisitionError."""
        self.player = self.media.open_microphone()
        self._relay = MediaRelay()

    def monitor_track(self):
        """A separate consumer of the microphone for level metering."""
        if self.player is None or self._relay is None or self.player.audio is None:
            return None
        return self._relay.subscribe(self.player.audio, buffered=False)

    def is_current(self, channel) -> bool:
        """True if `channel` is the control channel of the live connection."""
        return channel is not None and channel is self.channel

    async def negotiate(
        self,
        token: str,
        on_open: Callable[[Any], Any],
        on_message: Callable[[Any, Any], Any],
        on_failure: Callable[[str], Any],
    ) -> None:
        """
        Create the peer connection and data channel and run the SDP exchange.

        Handlers are registered before the offer is created so that no
        early track, message or state change is missed. Every handler is
        tagged with the connection it was registered on and ignores events
        once that connection has been released.

        Args:
            token: Session credential for the signaling endpoint
            on_open: Called with the channel once it opens
            on_message: Called with (channel, frame) for every inbound frame
            on_failure: Called with the connection state on failed/disconnected

        Raises:
            NegotiationError: Signaling rejected the offer
        """
        pc = self._pc_factory()
        self.pc = pc
        self.sink = self.media.open_playback()
        sink = self.sink
        failure_reported = False

        @pc.on("track")
        async def on_track(track):
            logger.info(f"🎵 Remote {track.kind} track received")
            if track.kind != "audio" or pc is not self.pc or sink is not self.sink:
                return
            sink.addTrack(track)
            await sink.start()

        @pc.on("connectionstatechange")
        async def on_connectionstatechange():
            nonlocal failure_reported
            state = pc.connectionState
            logger.info(f"🔌 WebRTC connection state: {state}")
            if pc is not self.pc or failure_reported:
                return
            if state in FAILED_CONNECTION_STATES:
                # Reported once per peer connection
                failure_reported = True
                await invoke(on_failure, state)

        pc.addTrack(self._relay.subscribe(self.player.audio))

        channel = pc.createDataChannel(self.config.channel_label)
        self.channel = channel

        @channel.on("open")
        async def on_channel_open():
            logger.info(f"✅ Data channel '{channel.label}' open")
            await invoke(on_open, channel)

        @channel.on("message")
        def on_channel_message(message):
            on_message(channel, message)

        @channel.on("close")
        def on_channel_close():
            logger.info(f"Data channel '{channel.label}' closed")

        logger.info("📝 Creating offer")
        offer = await pc.createOffer()
        sdp = await self._gather_candidates(pc, offer)

        answer_sdp = await self.signaling.exchange(sdp, token)

        await pc.setRemoteDescription(RTCSessionDescription(sdp=answer_sdp, type="answer"))
        logger.info("✅ Remote description set, connection established")

    async def _gather_candidates(self, pc, offer) -> str:
        """
        Set the local description and wait for ICE gathering.

        Gathering is bounded by `ice_gathering_timeout`; on timeout the
        offer as collected so far is used.
        """
        gathering = asyncio.ensure_future(pc.setLocalDescription(offer))
        self._gathering = gathering
        done, _ = await asyncio.wait({gathering}, timeout=self.config.ice_gathering_timeout)

        if gathering in done:
            gathering.result()
            logger.info(f"✅ ICE gathering {pc.iceGatheringState}")
        else:
            logger.warning(
                f"⚠️ ICE gathering timeout after {self.config.ice_gathering_timeout}s, "
                f"proceeding anyway"
            )
            gathering.add_done_callback(_log_late_gathering)

        description = pc.localDescription or offer
        return description.sdp

    def send(self, command: Dict[str, Any]) -> bool:
        """Write a command to the control channel if it is open."""
        channel = self.channel
        if channel is None or channel.readyState != "open":
            state = channel.readyState if channel is not None else "none"
            logger.warning(f"⚠️ Dropping {command.get('type')}: data channel is {state}")
            return False
        channel.send(encode_command(command))
        return True

    def release(self) -> List[Awaitable]:
        """
        Drop every handle now and return the pending close operations.

        After this returns, no handler registered by `negotiate` will act
        and `send` is a no-op.
        """
        pc, channel, player, sink = self.pc, self.channel, self.player, self.sink
        gathering = self._gathering
        self.pc = None
        self.channel = None
        self.player = None
        self.sink = None
        self._relay = None
        self._gathering = None

        pending: List[Awaitable] = []
        if gathering is not None and not gathering.done():
            gathering.cancel()
        if player is not None and player.audio is not None:
            player.audio.stop()
        if channel is not None:
            channel.close()
        if sink is not None:
            pending.append(sink.stop())
        if pc is not None:
            pending.append(pc.close())
        return pending

    async def close(self) -> None:
        """Release and wait for every close operation to finish."""
        results = await asyncio.gather(*self.release(), return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"⚠️ Error while closing connection resources: {result}")


def _log_late_gathering(future: asyncio.Future) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.warning(f"⚠️ Late ICE gathering failed: {error}")
