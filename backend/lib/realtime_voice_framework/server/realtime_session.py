"""Generic realtime voice session.

This is the FRAMEWORK part - contains ZERO app-specific dependencies.
Drives one connection to the remote speech service: handshake, control
channel, state machine, transcript, audio levels and teardown.
"""
import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from ..audio.level_monitor import AudioLevelMonitor
from ..core.bus import EventBus
from ..core.errors import NegotiationError, ProtocolDecodeError, ProtocolError
from ..core.types import ConnectionState, TranscriptEntry
from ..protocol.commands import build_session_config, response_cancel, response_create, session_update
from ..protocol.events import ErrorEvent, FunctionCallArgumentsDone, UnknownEvent, parse_server_event
from ..session.state_machine import SessionStateMachine
from ..session.transcript import TranscriptAssembler
from ..tools.router import DispatchResult, FunctionCallRouter
from ..transport.base import IssuedSession, TransportConfig
from ..transport.http import SessionIssuerClient
from ..webrtc.manager import RealtimeConnectionManager

logger = logging.getLogger(__name__)


class RealtimeVoiceSession:
    """
    One realtime voice conversation with the remote agent.

    This class handles all generic session infrastructure:
    - Connect handshake (credential -> microphone -> offer -> signaling -> answer)
    - Session configuration and greeting once the control channel opens
    - Ordered dispatch of inbound events through a single-writer bus
    - Function call routing and replies
    - Idempotent teardown from any state

    App-specific behavior is provided by subclass hooks
    (`build_session_update`, `build_greeting`), registered function specs
    and callbacks. Callbacks may be plain functions or coroutines.
    """

    def __init__(
        self,
        session_id: str,
        config: Optional[TransportConfig] = None,
        issuer: Optional[SessionIssuerClient] = None,
        connection: Optional[RealtimeConnectionManager] = None,
        on_state_change: Optional[Callable[[ConnectionState], Any]] = None,
        on_transcript: Optional[Callable[[TranscriptEntry], Any]] = None,
        on_error: Optional[Callable[[Exception], Any]] = None,
        on_complete: Optional[Callable[..., Any]] = None,
        on_levels: Optional[Callable[[float, float], Any]] = None,
    ):
        """
        Initialize a session.

        Args:
            session_id: Identifier sent to the session issuer
            config: Transport configuration
            issuer: Session credential client (defaults to the HTTP issuer)
            connection: Connection manager (defaults to aiortc-backed manager)
            on_state_change: Called with the new ConnectionState
            on_transcript: Called with each appended TranscriptEntry
            on_error: Called with fatal and protocol errors
            on_complete: Called once the session ends via a completing function call
            on_levels: Called with (user_level, ai_level) on every level update
        """
        self.session_id = session_id
        self.config = config or TransportConfig()
        self.issuer = issuer or SessionIssuerClient(self.config)
        self.connection = connection or RealtimeConnectionManager(self.config)

        # Callbacks (optional, for app-specific logic)
        self.on_state_change = on_state_change
        self.on_transcript = on_transcript
        self.on_error = on_error
        self.on_complete = on_complete
        self.on_levels = on_levels

        self.issued: Optional[IssuedSession] = None
        self.router = FunctionCallRouter(self.connection.send)
        self.bus = EventBus()

        self._machine = SessionStateMachine(on_change=self._state_changed)
        self._transcript = TranscriptAssembler(on_append=self._transcript_appended)
        self._levels = AudioLevelMonitor(gain=self.config.level_gain, on_level=self._levels_changed)

        self._error: Optional[Exception] = None
        self._connecting = False
        self._disconnect_requested = False
        self._transport_error: Optional[Exception] = None
        self._opened: Optional[asyncio.Future] = None
        self._queue: Optional[asyncio.Queue] = None
        self._dispatcher: Optional[asyncio.Task] = None
        self._callback_tasks: Set[asyncio.Task] = set()

        # Consumers, in delivery order
        self.bus.subscribe(self._machine.apply)
        self.bus.subscribe(self._transcript.handle)
        self.bus.subscribe(self._levels.handle)
        self.bus.subscribe(self._handle_function_call, FunctionCallArgumentsDone)
        self.bus.subscribe(self._handle_error_event, ErrorEvent)
        self.bus.subscribe(self._log_unknown_event, UnknownEvent)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._machine.state

    @property
    def is_connecting(self) -> bool:
        return self._connecting

    @property
    def is_connected(self) -> bool:
        return self._machine.is_connected

    @property
    def is_speaking(self) -> bool:
        return self._machine.is_speaking

    @property
    def is_listening(self) -> bool:
        return self._machine.is_listening

    @property
    def transcript(self) -> Tuple[TranscriptEntry, ...]:
        return self._transcript.entries

    @property
    def user_audio_level(self) -> float:
        return self._levels.user_level

    @property
    def ai_audio_level(self) -> float:
        return self._levels.ai_level

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    @property
    def level_monitor_running(self) -> bool:
        return self._levels.running

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def build_session_update(self, issued: IssuedSession) -> Dict[str, Any]:
        """Body of the session-configure command sent when the channel opens."""
        return build_session_config(
            voice=issued.voice,
            instructions=issued.instructions or "",
            tools=self.router.definitions(),
            transcription_model=self.config.transcription_model,
            temperature=self.config.temperature,
        )

    def build_greeting(self, issued: IssuedSession) -> Optional[str]:
        """Override directive for the first response."""
        return issued.greeting_instruction

    # ------------------------------------------------------------------
    # Caller actions
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Run the connect handshake and wait until the greeting has been requested.

        A call made while another connect is in flight, or while the session
        is not idle, is ignored.

        Raises:
            PreconditionError: Missing credential, issuer failure, or no microphone
            NegotiationError: Signaling rejected, channel never opened, or transport failed
        """
        if self._connecting:
            logger.info(f"⏳ Connect already in progress | session={self.session_id[:8]}...")
            return
        if self.state != ConnectionState.IDLE:
            logger.info(f"Connect ignored in state {self.state.value} | session={self.session_id[:8]}...")
            return

        self._connecting = True
        self._disconnect_requested = False
        self._transport_error = None
        self._error = None
        try:
            self._machine.transition(ConnectionState.CONNECTING)
            await self._establish()
            logger.info(f"✅ Session ready | session={self.session_id[:8]}...")
        except asyncio.CancelledError:
            await self._teardown(ConnectionState.IDLE)
            raise
        except Exception as e:
            await self._fail(e)
            raise
        finally:
            self._connecting = False
            if self._disconnect_requested:
                self._disconnect_requested = False
                logger.info(f"🛑 Applying deferred disconnect | session={self.session_id[:8]}...")
                await self._teardown(ConnectionState.COMPLETED)

    async def disconnect(self) -> None:
        """
        End the session and release every resource.

        While a connect is in flight the request is recorded and applied
        as soon as that attempt resolves.
        """
        if self._connecting:
            logger.info(f"⏳ Disconnect deferred until connect resolves | session={self.session_id[:8]}...")
            self._disconnect_requested = True
            return
        logger.info(f"🛑 Disconnecting | session={self.session_id[:8]}...")
        await self._teardown(ConnectionState.COMPLETED)

    def interrupt(self) -> bool:
        """Cancel the agent's current response. Only acts while the agent is speaking."""
        if self.state != ConnectionState.SPEAKING:
            return False
        if not self.connection.send(response_cancel()):
            return False
        self._machine.transition(ConnectionState.INTERRUPTED)
        logger.info(f"✋ Response interrupted | session={self.session_id[:8]}...")
        return True

    async def complete(self, *details: Any) -> None:
        """End the session because the conversation is over, then notify `on_complete`."""
        await self.disconnect()
        self._fire(self.on_complete, *details)

    def send(self, command: Dict[str, Any]) -> bool:
        return self.connection.send(command)

    async def drain(self) -> None:
        """Wait until every queued inbound event has been handled."""
        queue = self._queue
        if queue is not None:
            await queue.join()

    # ------------------------------------------------------------------
    # Connect handshake
    # ------------------------------------------------------------------

    async def _establish(self) -> None:
        issued = await self.issuer.issue(self.session_id)
        self.issued = issued

        self.connection.acquire_media()

        loop = asyncio.get_running_loop()
        self._opened = loop.create_future()
        opened = self._opened
        queue: asyncio.Queue = asyncio.Queue()
        self._queue = queue
        self._dispatcher = asyncio.ensure_future(self._dispatch_loop(queue))

        await self.connection.negotiate(
            issued.token,
            on_open=self._channel_opened,
            on_message=self._enqueue,
            on_failure=self._transport_failed,
        )

        try:
            channel = await asyncio.wait_for(
                asyncio.shield(opened), timeout=self.config.channel_open_timeout
            )
        except asyncio.TimeoutError:
            raise NegotiationError(
                f"Control channel did not open within {self.config.channel_open_timeout}s"
            )

        self._levels.start(self.connection.monitor_track())

        self.connection.send(session_update(self.build_session_update(issued)))
        await asyncio.sleep(self.config.greeting_delay)

        if self._transport_error is not None:
            raise self._transport_error
        if not self.connection.is_current(channel):
            raise NegotiationError("Control channel closed before the greeting")

        self.connection.send(response_create(instructions=self.build_greeting(issued)))
        self._machine.transition(ConnectionState.READY)

    def _channel_opened(self, channel) -> None:
        opened = self._opened
        if opened is None or opened.done() or not self.connection.is_current(channel):
            return
        opened.set_result(channel)

    async def _transport_failed(self, connection_state: str) -> None:
        error = NegotiationError(f"Connection lost ({connection_state})")
        if self._connecting:
            self._transport_error = error
            if self._opened is not None and not self._opened.done():
                self._opened.set_exception(error)
            return

        logger.error(f"❌ Transport {connection_state} | session={self.session_id[:8]}...")
        self._error = error
        await self._teardown(ConnectionState.IDLE)
        self._fire(self.on_error, error)

    async def _fail(self, error: Exception) -> None:
        logger.error(f"❌ Connection failed | session={self.session_id[:8]}...: {error}")
        self._error = error
        await self._teardown(ConnectionState.IDLE)
        self._fire(self.on_error, error)

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    def _enqueue(self, channel, message) -> None:
        queue = self._queue
        if queue is None or not self.connection.is_current(channel):
            logger.debug("Dropping frame from a released channel")
            return
        queue.put_nowait((channel, message))

    async def _dispatch_loop(self, queue: asyncio.Queue) -> None:
        """Consume inbound frames one at a time; each event's handlers finish before the next."""
        try:
            while self._queue is queue:
                channel, message = await queue.get()
                try:
                    if not self.connection.is_current(channel):
                        logger.debug("Dropping stale event")
                        continue
                    try:
                        event = parse_server_event(message)
                    except ProtocolDecodeError as e:
                        logger.error(f"❌ Failed to parse event: {e}")
                        continue
                    await self.bus.publish(event)
                finally:
                    queue.task_done()
        finally:
            while not queue.empty():
                queue.get_nowait()
                queue.task_done()

    async def _handle_function_call(self, event: FunctionCallArgumentsDone) -> DispatchResult:
        return await self.router.dispatch(event)

    def _handle_error_event(self, event: ErrorEvent) -> None:
        error = ProtocolError(event.message, code=event.code, error_type=event.error_type)
        logger.error(f"❌ Server error: {event.message} (code={event.code})")
        self._error = error
        self._fire(self.on_error, error)

    def _log_unknown_event(self, event: UnknownEvent) -> None:
        logger.debug(f"Unhandled event: {event.type}")

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def _release(self) -> List[Awaitable]:
        """Null every handle synchronously; return the pending close operations."""
        self._levels.stop()

        dispatcher = self._dispatcher
        self._dispatcher = None
        self._queue = None
        if dispatcher is not None and not dispatcher.done():
            if dispatcher is not asyncio.current_task():
                dispatcher.cancel()

        opened = self._opened
        self._opened = None
        if opened is not None:
            if not opened.done():
                opened.cancel()
            elif not opened.cancelled():
                opened.exception()

        return self.connection.release()

    async def _teardown(self, final_state: ConnectionState) -> None:
        pending = self._release()
        self._machine.transition(final_state)
        if not pending:
            return
        results = await asyncio.gather(*pending, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"⚠️ Error while closing resources | session={self.session_id[:8]}...: {result}")

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _state_changed(self, previous: ConnectionState, state: ConnectionState) -> None:
        logger.info(f"🔄 {previous.value} -> {state.value} | session={self.session_id[:8]}...")
        self._fire(self.on_state_change, state)

    def _transcript_appended(self, entry: TranscriptEntry) -> None:
        self._fire(self.on_transcript, entry)

    def _levels_changed(self, user_level: float, ai_level: float) -> None:
        self._fire(self.on_levels, user_level, ai_level)

    def _fire(self, callback: Optional[Callable], *args: Any) -> None:
        """Run a caller callback; coroutine callbacks are scheduled, never awaited inline."""
        if callback is None:
            return
        try:
            result = callback(*args)
        except Exception as e:
            logger.error(f"❌ Callback {getattr(callback, '__name__', callback)} failed: {e}", exc_info=True)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._callback_tasks.add(task)
            task.add_done_callback(self._callback_done)

    def _callback_done(self, task: asyncio.Task) -> None:
        self._callback_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"❌ Callback failed: {task.exception()}")
