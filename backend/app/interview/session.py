"""
Interview session: the realtime voice session plus interview semantics.

Adds the phase controller, the three interview function calls, and the
interview directive/greeting on top of the generic framework session.
"""

import logging
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit

from lib.realtime_voice_framework.core.bus import invoke
from lib.realtime_voice_framework.core.errors import PersistenceError
from lib.realtime_voice_framework.protocol.commands import build_session_config, default_turn_detection
from lib.realtime_voice_framework.server import RealtimeVoiceSession
from lib.realtime_voice_framework.transport import IssuedSession, TransportConfig

from .instructions import (
    build_greeting_instruction,
    build_interview_instructions,
    build_phase_update_instructions,
)
from .models import InterviewPhase, PersonaConfig, SessionIdentity
from .persistence import ToolResponseClient
from .phases import PhaseController
from .tools import (
    ADVANCE_PHASE,
    END_INTERVIEW,
    SAVE_CANDIDATE_ANSWER,
    AdvancePhaseArgs,
    EndInterviewArgs,
    SaveCandidateAnswerArgs,
    interview_function_specs,
)

logger = logging.getLogger(__name__)

FunctionCallHandler = Callable[[str, Dict[str, Any]], Any]


class InterviewSession(RealtimeVoiceSession):
    """
    A mock interview conducted by the remote agent.

    Caller API: `connect()`, `disconnect()`, `interrupt()`; observable
    `state`, `phase`, `question_index`, `transcript`, audio levels and
    `error`; callbacks for state, phase, transcript, error and completion.
    """

    def __init__(
        self,
        identity: SessionIdentity,
        persona: Optional[PersonaConfig] = None,
        config: Optional[TransportConfig] = None,
        persistence: Optional[ToolResponseClient] = None,
        on_phase_change: Optional[Callable[[InterviewPhase], Any]] = None,
        on_function_call: Optional[FunctionCallHandler] = None,
        **kwargs: Any,
    ):
        """
        Initialize an interview session.

        Args:
            identity: Candidate, company, role and prepared questions
            persona: Interviewer persona; when given the directive is built
                locally, otherwise the issuer's directive is used
            config: Transport configuration
            persistence: Tool-response client (defaults to the issuer's origin)
            on_phase_change: Called with the new InterviewPhase
            on_function_call: Replaces the default network call for
                save_candidate_answer; called with (name, arguments) and
                returns the result sent back to the agent
            **kwargs: Passed to RealtimeVoiceSession (issuer, connection, callbacks)
        """
        super().__init__(identity.session_id, config=config, **kwargs)
        self.identity = identity
        self.persona = persona
        self.persistence = persistence or ToolResponseClient(
            _origin(self.config.issuer_url), timeout=self.config.http_timeout
        )
        self.on_phase_change = on_phase_change
        self.on_function_call = on_function_call

        self.phases = PhaseController(identity.total_questions)
        self.phases.add_listener(self._phase_changed)

        for spec in interview_function_specs(
            save_answer=self._save_candidate_answer,
            advance_phase=self._advance_phase,
            end_interview=self._end_interview,
        ):
            self.router.register(spec)

    @classmethod
    def create(
        cls,
        identity: SessionIdentity,
        persona: Optional[PersonaConfig] = None,
        config: Optional[TransportConfig] = None,
        api_base: Optional[str] = None,
        **kwargs: Any,
    ) -> "InterviewSession":
        """Interview session wired to the default aiohttp/aiortc clients."""
        config = config or TransportConfig.from_env()
        persistence = ToolResponseClient(
            api_base or _origin(config.issuer_url), timeout=config.http_timeout
        )
        return cls(identity, persona=persona, config=config, persistence=persistence, **kwargs)

    @property
    def phase(self) -> InterviewPhase:
        return self.phases.phase

    @property
    def question_index(self) -> int:
        return self.phases.question_index

    # ------------------------------------------------------------------
    # Directive
    # ------------------------------------------------------------------

    def directive(self, issued: Optional[IssuedSession] = None) -> str:
        """Full directive for the current phase."""
        if self.persona is None and issued is not None and issued.instructions:
            return issued.instructions
        return build_interview_instructions(
            self.persona or PersonaConfig(),
            self.identity,
            self.phase,
            self.question_index,
        )

    def build_session_update(self, issued: IssuedSession) -> Dict[str, Any]:
        return build_session_config(
            voice=issued.voice,
            instructions=self.directive(issued),
            tools=self.router.definitions(),
            turn_detection=default_turn_detection(),
            transcription_model=self.config.transcription_model,
            temperature=self.config.temperature,
        )

    def build_greeting(self, issued: IssuedSession) -> str:
        return issued.greeting_instruction or build_greeting_instruction(self.identity.candidate_name)

    # ------------------------------------------------------------------
    # Function call handlers
    # ------------------------------------------------------------------

    async def _save_candidate_answer(self, args: SaveCandidateAnswerArgs, call) -> Dict[str, Any]:
        arguments = args.model_dump(mode="json", exclude_none=True)
        if self.on_function_call is not None:
            result = await invoke(self.on_function_call, SAVE_CANDIDATE_ANSWER, arguments)
        else:
            body = await self.persistence.record(self.session_id, SAVE_CANDIDATE_ANSWER, arguments)
            result = {"success": True}
            if isinstance(body, dict) and body.get("data") is not None:
                result["data"] = body["data"]

        self.phases.record_answer(args.question_index)
        if isinstance(result, dict):
            return result
        return {"success": True, "result": result}

    async def _advance_phase(self, args: AdvancePhaseArgs, call) -> Dict[str, Any]:
        phase = self.phases.advance(args.next_phase, args.reason)
        await self._record_best_effort(ADVANCE_PHASE, args.model_dump(mode="json", exclude_none=True))
        return {
            "success": True,
            "phase": phase.value,
            "next_action": build_phase_update_instructions(
                phase, self.question_index, self.identity.total_questions
            ),
        }

    async def _end_interview(self, args: EndInterviewArgs, call) -> Dict[str, Any]:
        logger.info(f"🏁 Interview ending ({args.reason.value}) | session={self.session_id[:8]}...")
        await self._record_best_effort(END_INTERVIEW, args.model_dump(mode="json", exclude_none=True))
        await self.complete(args.reason.value)
        return {"success": True}

    async def _record_best_effort(self, tool: str, arguments: Dict[str, Any]) -> None:
        try:
            await self.persistence.record(self.session_id, tool, arguments)
        except PersistenceError as e:
            logger.warning(f"⚠️ Could not record {tool} | session={self.session_id[:8]}...: {e}")

    def _phase_changed(self, previous: InterviewPhase, phase: InterviewPhase, reason: Optional[str]) -> None:
        self._fire(self.on_phase_change, phase)


def _origin(url: str) -> str:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return "http://localhost:8000"
    return f"{parts.scheme}://{parts.netloc}"
