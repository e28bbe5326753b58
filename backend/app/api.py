"""
Application-level API routes.

Expose `/live` for Render and other load balancers, plus the mock
interview endpoints the realtime client consumes: interview creation,
session credential issuing and tool-response recording.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError

from lib.realtime_voice_framework.core.errors import RealtimeError

from .interview.instructions import build_greeting_instruction, build_interview_instructions
from .interview.issuer import EphemeralTokenIssuer, select_voice
from .interview.models import (
    BackchannelFrequency,
    InterviewStyle,
    PersonaConfig,
    Question,
    SessionIdentity,
)
from .interview.store import STATUS_COMPLETED, InterviewNotFoundError, InterviewStore
from .interview.tools import (
    ADVANCE_PHASE,
    END_INTERVIEW,
    SAVE_CANDIDATE_ANSWER,
    AdvancePhaseArgs,
    EndInterviewArgs,
    SaveCandidateAnswerArgs,
)

logger = logging.getLogger(__name__)

# No version prefix; live endpoint is exactly `/live`
router = APIRouter()

_store = InterviewStore()


def get_store() -> InterviewStore:
    return _store


def get_token_issuer() -> EphemeralTokenIssuer:
    return EphemeralTokenIssuer()


# ============================================================================
# REQUEST MODELS
# ============================================================================

class QuestionIn(BaseModel):
    text: str = Field(min_length=1)
    category: str = "general"
    tips: List[str] = Field(default_factory=list)


class InterviewerIn(BaseModel):
    name: str = "Alex"
    title: str = "Senior Hiring Manager"
    style: InterviewStyle = InterviewStyle.PROFESSIONAL
    warmth: int = Field(default=6, ge=1, le=10)
    strictness: int = Field(default=5, ge=1, le=10)
    backchannel: BackchannelFrequency = BackchannelFrequency.MEDIUM
    gender: str = "female"
    voice: Optional[str] = None


class CreateInterviewRequest(BaseModel):
    candidate_name: str = Field(default="Candidate", alias="candidateName")
    company_name: Optional[str] = Field(default=None, alias="companyName")
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    interviewer: InterviewerIn = Field(default_factory=InterviewerIn)
    questions: List[QuestionIn] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class RealtimeSessionRequest(BaseModel):
    session_id: str = Field(alias="sessionId", min_length=1)

    model_config = {"populate_by_name": True}


# ============================================================================
# ROUTES
# ============================================================================

@router.get("/live")
async def live():
    """Liveness probe used by Render (and other health checks)."""
    return {"status": "ok"}


@router.post("/api/mock/create")
async def create_interview(request: CreateInterviewRequest, store: InterviewStore = Depends(get_store)):
    """Create an interview plan: candidate, company, role, interviewer and questions."""
    interviewer = request.interviewer
    persona = PersonaConfig(
        name=interviewer.name,
        title=interviewer.title,
        style=interviewer.style,
        warmth=interviewer.warmth,
        strictness=interviewer.strictness,
        backchannel=interviewer.backchannel,
    )
    record = store.create(
        candidate_name=request.candidate_name,
        company_name=request.company_name,
        job_title=request.job_title,
        persona=persona,
        interviewer_gender=interviewer.gender,
        voice=interviewer.voice,
        questions=[Question(text=q.text, category=q.category, tips=tuple(q.tips)) for q in request.questions],
    )
    return {"success": True, "data": {"id": record.id}}


@router.get("/api/mock/{interview_id}")
async def get_interview(interview_id: str, store: InterviewStore = Depends(get_store)):
    try:
        record = store.get(interview_id)
    except InterviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "data": record.to_dict()}


@router.post("/api/mock/realtime/session")
async def create_realtime_session(
    request: RealtimeSessionRequest,
    store: InterviewStore = Depends(get_store),
    issuer: EphemeralTokenIssuer = Depends(get_token_issuer),
):
    """
    Issue a short-lived credential and the session configuration.

    Response:
        token: ephemeral client secret
        voice: voice selector
        config: {instructions, greetingInstruction}
        session: summary of the interview
    """
    try:
        record = store.get(request.session_id)
    except InterviewNotFoundError:
        raise HTTPException(status_code=400, detail="Interview session not found")
    if record.status == STATUS_COMPLETED:
        raise HTTPException(status_code=400, detail="Interview already completed")

    voice = select_voice(record.persona.style, record.interviewer_gender, record.voice)
    identity = SessionIdentity(
        session_id=record.id,
        candidate_name=record.candidate_name,
        company_name=record.company_name,
        job_title=record.job_title,
        questions=record.questions,
    )
    instructions = build_interview_instructions(
        record.persona, identity, record.phase, record.question_index
    )

    try:
        token = await issuer.create(voice)
    except RealtimeError as e:
        logger.error(f"❌ [Realtime Session] {e}")
        raise HTTPException(status_code=502, detail="Failed to create realtime session")

    store.start(record.id)
    logger.info(f"✅ [Realtime Session] Ready | session={record.id[:8]}..., voice={voice}")

    return {
        "success": True,
        "data": {
            "token": token.value,
            "voice": voice,
            "config": {
                "instructions": instructions,
                "greetingInstruction": build_greeting_instruction(record.candidate_name),
            },
            "session": {
                "id": record.id,
                "interviewerName": record.persona.name,
                "interviewerTitle": record.persona.title,
                "companyName": record.company_name,
                "jobTitle": record.job_title,
                "totalQuestions": len(record.questions),
                "currentPhase": record.phase.value,
                "currentQuestionIndex": record.question_index,
            },
        },
    }


@router.post("/api/mock/{interview_id}/tool-response")
async def record_tool_response(
    interview_id: str,
    body: Dict[str, Any] = Body(...),
    store: InterviewStore = Depends(get_store),
):
    """Apply a function call made by the remote interviewer to the stored interview."""
    tool = body.get("tool")
    arguments = {k: v for k, v in body.items() if k != "tool"}

    try:
        store.get(interview_id)
        if tool == SAVE_CANDIDATE_ANSWER:
            args = SaveCandidateAnswerArgs.model_validate(arguments)
            result = store.save_answer(
                interview_id,
                args.question_index,
                args.answer_summary,
                used_star_method=bool(args.used_star_method),
                quality=args.answer_quality.value if args.answer_quality else None,
            )
        elif tool == ADVANCE_PHASE:
            args = AdvancePhaseArgs.model_validate(arguments)
            logger.info(f"[Tool Response] Advancing to {args.next_phase} (reason: {args.reason})")
            result = store.advance_phase(interview_id, args.next_phase)
        elif tool == END_INTERVIEW:
            args = EndInterviewArgs.model_validate(arguments)
            result = store.end(interview_id, args.reason.value, args.overall_impression)
        else:
            raise HTTPException(status_code=400, detail="Unknown tool type")
    except InterviewNotFoundError:
        raise HTTPException(status_code=400, detail="Session not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid {tool} payload: {e.error_count()} error(s)")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"success": True, "data": result}
