"""
Interview function calls: argument models, JSON schemas advertised to
the remote agent, and the FunctionSpec wiring.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lib.realtime_voice_framework.tools import FunctionSpec

from .models import ADVANCEABLE_PHASES, parse_phase

SAVE_CANDIDATE_ANSWER = "save_candidate_answer"
ADVANCE_PHASE = "advance_phase"
END_INTERVIEW = "end_interview"


class AnswerQuality(str, Enum):
    WEAK = "weak"
    AVERAGE = "average"
    STRONG = "strong"


class EndReason(str, Enum):
    COMPLETED = "completed"
    CANDIDATE_ENDED = "candidate_ended"
    TECHNICAL_ISSUE = "technical_issue"


class SaveCandidateAnswerArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question_index: int = Field(ge=0)
    answer_summary: str = Field(min_length=1)
    used_star_method: Optional[bool] = None
    answer_quality: Optional[AnswerQuality] = None


class AdvancePhaseArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    next_phase: str
    reason: Optional[str] = None

    @field_validator("next_phase", mode="before")
    @classmethod
    def _advanceable(cls, value):
        phase = parse_phase(value)
        if phase not in ADVANCEABLE_PHASES:
            raise ValueError(f"Cannot advance to the initial phase {phase.value!r}")
        return phase.value


class EndInterviewArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    reason: EndReason
    overall_impression: Optional[str] = None


SAVE_CANDIDATE_ANSWER_PARAMETERS = {
    "type": "object",
    "properties": {
        "question_index": {
            "type": "number",
            "description": "Index of the question that was answered (0-based)",
        },
        "answer_summary": {
            "type": "string",
            "description": "Brief summary of the candidate's answer",
        },
        "used_star_method": {
            "type": "boolean",
            "description": "Whether the candidate used the STAR method structure",
        },
        "answer_quality": {
            "type": "string",
            "enum": [q.value for q in AnswerQuality],
            "description": "Initial assessment of answer quality",
        },
    },
    "required": ["question_index", "answer_summary"],
}

ADVANCE_PHASE_PARAMETERS = {
    "type": "object",
    "properties": {
        "next_phase": {
            "type": "string",
            "enum": [p.value for p in ADVANCEABLE_PHASES],
            "description": "The phase to transition to",
        },
        "reason": {
            "type": "string",
            "description": "Brief reason for the transition",
        },
    },
    "required": ["next_phase"],
}

END_INTERVIEW_PARAMETERS = {
    "type": "object",
    "properties": {
        "reason": {
            "type": "string",
            "enum": [r.value for r in EndReason],
            "description": "Why the interview is ending",
        },
        "overall_impression": {
            "type": "string",
            "description": "Brief overall impression of the candidate",
        },
    },
    "required": ["reason"],
}


def interview_function_specs(save_answer, advance_phase, end_interview) -> List[FunctionSpec]:
    """
    The three interview functions bound to their handlers.

    Handlers take (validated arguments, call event) and return a result dict.
    `end_interview` does not reply: the session is ending.
    """
    return [
        FunctionSpec(
            name=SAVE_CANDIDATE_ANSWER,
            description="Save the candidate's answer to a question for later analysis",
            parameters=SAVE_CANDIDATE_ANSWER_PARAMETERS,
            arguments_model=SaveCandidateAnswerArgs,
            handler=save_answer,
        ),
        FunctionSpec(
            name=ADVANCE_PHASE,
            description="Move to the next phase of the interview",
            parameters=ADVANCE_PHASE_PARAMETERS,
            arguments_model=AdvancePhaseArgs,
            handler=advance_phase,
        ),
        FunctionSpec(
            name=END_INTERVIEW,
            description="End the interview session",
            parameters=END_INTERVIEW_PARAMETERS,
            arguments_model=EndInterviewArgs,
            handler=end_interview,
            reply=False,
        ),
    ]
