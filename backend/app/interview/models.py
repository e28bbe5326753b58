"""
Interview domain types.

Session identity and persona are immutable for the lifetime of a
connection; the interview phase is the only interview state that changes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class InterviewStyle(Enum):
    FRIENDLY = "friendly"
    PROFESSIONAL = "professional"
    DIRECT = "direct"
    WARM = "warm"


class BackchannelFrequency(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InterviewPhase(Enum):
    """Coarse stage of the interview, independent of connection activity."""
    WELCOME = "welcome"
    SMALL_TALK = "small_talk"
    COMPANY_INTRO = "company_intro"
    QUESTIONS = "questions"
    WRAP_UP = "wrap_up"
    GOODBYE = "goodbye"
    COMPLETED = "completed"


PHASE_ORDER: Tuple[InterviewPhase, ...] = tuple(InterviewPhase)

# Targets accepted from advance_phase (everything but the initial phase)
ADVANCEABLE_PHASES: Tuple[InterviewPhase, ...] = PHASE_ORDER[1:]

DIAL_MIN = 1
DIAL_MAX = 10


@dataclass(frozen=True)
class Question:
    """A prepared interview question."""
    text: str
    category: str = "general"
    tips: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        return cls(
            text=data["text"],
            category=data.get("category") or data.get("type") or "general",
            tips=tuple(data.get("tips") or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "category": self.category, "tips": list(self.tips)}


@dataclass(frozen=True)
class SessionIdentity:
    """Who is being interviewed, for what, and with which questions."""
    session_id: str
    candidate_name: str
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    questions: Tuple[Question, ...] = ()

    def __post_init__(self):
        if not self.session_id:
            raise ValueError("session_id is required")
        # Accept any iterable of questions but store an immutable tuple
        object.__setattr__(self, "questions", tuple(self.questions))

    @property
    def total_questions(self) -> int:
        return len(self.questions)


@dataclass(frozen=True)
class PersonaConfig:
    """Interviewer persona used to compose the directive."""
    name: str = "Alex"
    title: str = "Senior Hiring Manager"
    style: InterviewStyle = InterviewStyle.PROFESSIONAL
    warmth: int = 6
    strictness: int = 5
    backchannel: BackchannelFrequency = BackchannelFrequency.MEDIUM

    def __post_init__(self):
        for dial in ("warmth", "strictness"):
            value = getattr(self, dial)
            if not isinstance(value, int) or not DIAL_MIN <= value <= DIAL_MAX:
                raise ValueError(f"{dial} must be an integer in {DIAL_MIN}-{DIAL_MAX}, got {value!r}")
        object.__setattr__(self, "style", InterviewStyle(self.style))
        object.__setattr__(self, "backchannel", BackchannelFrequency(self.backchannel))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersonaConfig":
        defaults = cls()
        return cls(
            name=data.get("name") or defaults.name,
            title=data.get("title") or defaults.title,
            style=data.get("style") or defaults.style,
            warmth=int(data.get("warmth", defaults.warmth)),
            strictness=int(data.get("strictness", defaults.strictness)),
            backchannel=(
                data.get("backchannel")
                or data.get("backchannelFrequency")
                or defaults.backchannel
            ),
        )


@dataclass
class AnswerRecord:
    """A saved candidate answer."""
    question_index: int
    summary: str
    used_star_method: bool = False
    quality: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_index": self.question_index,
            "answer_summary": self.summary,
            "used_star_method": self.used_star_method,
            "answer_quality": self.quality,
        }


def parse_phase(value: Any) -> InterviewPhase:
    """Phase from an enum member or its wire name. Raises ValueError."""
    if isinstance(value, InterviewPhase):
        return value
    try:
        return InterviewPhase(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown interview phase: {value!r}") from None


def questions_from(items: List[Dict[str, Any]]) -> Tuple[Question, ...]:
    return tuple(Question.from_dict(item) for item in items)
