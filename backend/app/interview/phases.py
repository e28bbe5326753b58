import logging
from typing import Any, Callable, List, Optional

from .models import ADVANCEABLE_PHASES, PHASE_ORDER, InterviewPhase, parse_phase

logger = logging.getLogger(__name__)

PhaseListener = Callable[[InterviewPhase, InterviewPhase, Optional[str]], Any]


class PhaseController:
    """
    Interview progress: current phase plus current question index.

    The remote agent decides the order. Any of the non-initial phases is
    accepted as a target; a move that goes backwards (or stays put) is
    applied anyway and logged as a warning.
    """

    def __init__(self, total_questions: int = 0):
        if total_questions < 0:
            raise ValueError("total_questions must be >= 0")
        self.total_questions = total_questions
        self._phase = InterviewPhase.WELCOME
        self._question_index = 0
        self._listeners: List[PhaseListener] = []

    @property
    def phase(self) -> InterviewPhase:
        return self._phase

    @property
    def question_index(self) -> int:
        return self._question_index

    def add_listener(self, listener: PhaseListener) -> None:
        """Register `listener(previous, phase, reason)`, called after each accepted advance."""
        self._listeners.append(listener)

    def advance(self, target: Any, reason: Optional[str] = None) -> InterviewPhase:
        """
        Move to `target`.

        Raises:
            ValueError: Unknown phase name, or the initial phase
        """
        phase = parse_phase(target)
        if phase not in ADVANCEABLE_PHASES:
            raise ValueError(f"Cannot advance to the initial phase '{phase.value}'")

        previous = self._phase
        if PHASE_ORDER.index(phase) <= PHASE_ORDER.index(previous):
            logger.warning(
                f"⚠️ Non-monotonic phase transition {previous.value} -> {phase.value}"
                + (f" ({reason})" if reason else "")
            )

        self._phase = phase
        logger.info(f"📍 Phase {previous.value} -> {phase.value}" + (f" | reason={reason}" if reason else ""))

        for listener in list(self._listeners):
            listener(previous, phase, reason)
        return phase

    def record_answer(self, question_index: int) -> int:
        """
        Note that question `question_index` was answered; the current index
        moves past it, bounded by the question count.
        """
        if question_index < 0:
            raise ValueError("question_index must be >= 0")
        upper = self.total_questions
        self._question_index = min(max(self._question_index, question_index + 1), upper)
        return self._question_index

    def snapshot(self) -> dict:
        return {
            "phase": self._phase.value,
            "question_index": self._question_index,
            "total_questions": self.total_questions,
        }
