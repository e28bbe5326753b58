"""Interview application: mock interviews on top of the realtime voice framework."""

from .instructions import (
    build_greeting_instruction,
    build_interview_instructions,
    build_phase_update_instructions,
)
from .issuer import EphemeralTokenIssuer, select_voice
from .models import (
    BackchannelFrequency,
    InterviewPhase,
    InterviewStyle,
    PersonaConfig,
    Question,
    SessionIdentity,
)
from .persistence import ToolResponseClient
from .phases import PhaseController
from .session import InterviewSession
from .store import InterviewRecord, InterviewStore

__all__ = [
    "InterviewSession",
    "InterviewPhase",
    "InterviewStyle",
    "BackchannelFrequency",
    "PersonaConfig",
    "Question",
    "SessionIdentity",
    "PhaseController",
    "ToolResponseClient",
    "EphemeralTokenIssuer",
    "select_voice",
    "InterviewStore",
    "InterviewRecord",
    "build_interview_instructions",
    "build_phase_update_instructions",
    "build_greeting_instruction",
]
