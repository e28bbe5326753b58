"""
In-memory interview store.

Holds interview plans and the results recorded by the tool-response
endpoint. No database: state lives for the lifetime of the process.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .models import AnswerRecord, InterviewPhase, PersonaConfig, Question, parse_phase

logger = logging.getLogger(__name__)

STATUS_PLANNED = "planned"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"

QUALITY_SCORES = {"strong": 8, "average": 5, "weak": 3}


class InterviewNotFoundError(LookupError):
    """No interview with this id."""


def score_for(quality: Optional[str]) -> int:
    """Initial score from the agent's quality assessment; unknown counts as weak."""
    return QUALITY_SCORES.get(quality or "", QUALITY_SCORES["weak"])


@dataclass
class InterviewRecord:
    """A planned (or running, or finished) mock interview."""
    id: str
    candidate_name: str
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    persona: PersonaConfig = field(default_factory=PersonaConfig)
    interviewer_gender: str = "female"
    voice: Optional[str] = None
    questions: Tuple[Question, ...] = ()
    status: str = STATUS_PLANNED
    phase: InterviewPhase = InterviewPhase.WELCOME
    question_index: int = 0
    answers: Dict[int, AnswerRecord] = field(default_factory=dict)
    scores: Dict[int, int] = field(default_factory=dict)
    feedback_summary: Optional[str] = None
    end_reason: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated_at: datetime = field(default_factory=datetime.now)

    def touch(self):
        self.updated_at = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "candidateName": self.candidate_name,
            "companyName": self.company_name,
            "jobTitle": self.job_title,
            "interviewer": {
                "name": self.persona.name,
                "title": self.persona.title,
                "style": self.persona.style.value,
                "gender": self.interviewer_gender,
            },
            "questions": [q.to_dict() for q in self.questions],
            "status": self.status,
            "currentPhase": self.phase.value,
            "currentQuestionIndex": self.question_index,
            "answers": [
                {**self.answers[i].to_dict(), "score": self.scores.get(i)}
                for i in sorted(self.answers)
            ],
            "feedbackSummary": self.feedback_summary,
            "endReason": self.end_reason,
            "createdAt": self.created_at.isoformat(),
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }


class InterviewStore:
    """Interview records keyed by id."""

    def __init__(self):
        self._records: Dict[str, InterviewRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def create(
        self,
        candidate_name: str,
        questions: List[Question],
        company_name: Optional[str] = None,
        job_title: Optional[str] = None,
        persona: Optional[PersonaConfig] = None,
        interviewer_gender: str = "female",
        voice: Optional[str] = None,
    ) -> InterviewRecord:
        record = InterviewRecord(
            id=str(uuid.uuid4()),
            candidate_name=candidate_name,
            company_name=company_name,
            job_title=job_title,
            persona=persona or PersonaConfig(),
            interviewer_gender=interviewer_gender,
            voice=voice,
            questions=tuple(questions),
        )
        self._records[record.id] = record
        logger.info(f"✅ Created interview {record.id[:8]}... ({len(record.questions)} questions)")
        return record

    def get(self, interview_id: str) -> InterviewRecord:
        record = self._records.get(interview_id)
        if record is None:
            raise InterviewNotFoundError(f"Interview session not found: {interview_id}")
        return record

    def start(self, interview_id: str) -> InterviewRecord:
        """Mark a planned interview in progress. No-op for running ones."""
        record = self.get(interview_id)
        if record.status == STATUS_PLANNED:
            record.status = STATUS_IN_PROGRESS
            record.started_at = datetime.now()
            record.touch()
            logger.info(f"▶️ Interview {interview_id[:8]}... in progress")
        return record

    def save_answer(
        self,
        interview_id: str,
        question_index: int,
        summary: str,
        used_star_method: bool = False,
        quality: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Record an answer for an existing question.

        Raises:
            InterviewNotFoundError: Unknown interview
            ValueError: No question at `question_index`
        """
        record = self.get(interview_id)
        if not 0 <= question_index < len(record.questions):
            raise ValueError("Question not found")

        record.answers[question_index] = AnswerRecord(
            question_index=question_index,
            summary=summary,
            used_star_method=bool(used_star_method),
            quality=quality,
        )
        record.scores[question_index] = score_for(quality)
        record.question_index = question_index + 1
        record.touch()
        return {
            "success": True,
            "questionIndex": question_index,
            "nextQuestionIndex": question_index + 1,
        }

    def advance_phase(self, interview_id: str, phase: Any) -> Dict[str, Any]:
        record = self.get(interview_id)
        record.phase = parse_phase(phase)
        record.touch()
        return {"success": True, "phase": record.phase.value}

    def end(self, interview_id: str, reason: str, overall_impression: Optional[str] = None) -> Dict[str, Any]:
        record = self.get(interview_id)
        record.status = STATUS_COMPLETED
        record.phase = InterviewPhase.COMPLETED
        record.feedback_summary = overall_impression
        record.end_reason = reason
        record.completed_at = datetime.now()
        record.touch()
        logger.info(f"🏁 Interview {interview_id[:8]}... completed ({reason})")
        return {"success": True, "status": STATUS_COMPLETED, "reason": reason}
