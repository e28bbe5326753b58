from .state_machine import TRANSITIONS, SessionStateMachine, reduce
from .transcript import TranscriptAssembler

__all__ = ["SessionStateMachine", "TranscriptAssembler", "TRANSITIONS", "reduce"]
