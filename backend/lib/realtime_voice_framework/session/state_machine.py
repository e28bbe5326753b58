"""
Session state machine.

`reduce` is a pure function from (state, inbound event) to the next
connection state. `SessionStateMachine` holds the current value, applies
caller-driven transitions and notifies a listener on every change.
"""

import logging
from typing import Any, Callable, Dict, Optional, Type

from ..core.types import LIVE_STATES, ConnectionState
from ..protocol.events import (
    AudioChunk,
    ResponseCreated,
    ResponseDone,
    ServerEvent,
    SpeechStarted,
    SpeechStopped,
)

logger = logging.getLogger(__name__)

# Inbound event -> next state. Anything not listed leaves state unchanged.
TRANSITIONS: Dict[Type[ServerEvent], ConnectionState] = {
    SpeechStarted: ConnectionState.LISTENING,
    SpeechStopped: ConnectionState.THINKING,
    ResponseCreated: ConnectionState.THINKING,
    AudioChunk: ConnectionState.SPEAKING,
    ResponseDone: ConnectionState.READY,
}

# Inbound events only drive state while a connection is established
_EVENT_DRIVEN_STATES = LIVE_STATES - {ConnectionState.CONNECTING}


def reduce(state: ConnectionState, event: Any) -> ConnectionState:
    """Next connection state after an inbound event."""
    if state not in _EVENT_DRIVEN_STATES:
        return state
    return TRANSITIONS.get(type(event), state)


class SessionStateMachine:
    """Current connection state plus derived flags."""

    def __init__(self, on_change: Optional[Callable[[ConnectionState, ConnectionState], Any]] = None):
        self._state = ConnectionState.IDLE
        self._on_change = on_change

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state in _EVENT_DRIVEN_STATES

    @property
    def is_speaking(self) -> bool:
        return self._state == ConnectionState.SPEAKING

    @property
    def is_listening(self) -> bool:
        return self._state == ConnectionState.LISTENING

    def apply(self, event: Any) -> bool:
        """Feed an inbound event. Returns True if the state changed."""
        return self._set(reduce(self._state, event))

    def transition(self, state: ConnectionState) -> bool:
        """Caller-driven transition (connect, interrupt, teardown)."""
        return self._set(state)

    def _set(self, state: ConnectionState) -> bool:
        if not isinstance(state, ConnectionState):
            raise TypeError(f"Not a connection state: {state!r}")
        if state == self._state:
            return False
        previous, self._state = self._state, state
        logger.debug(f"State {previous.value} -> {state.value}")
        if self._on_change is not None:
            self._on_change(previous, state)
        return True
