"""
Unit tests for interview models, directive composition and the phase controller.
"""

import logging

import pytest

from app.interview.instructions import (
    build_greeting_instruction,
    build_interview_instructions,
    build_phase_update_instructions,
)
from app.interview.models import (
    BackchannelFrequency,
    InterviewPhase,
    InterviewStyle,
    PersonaConfig,
    Question,
    SessionIdentity,
    parse_phase,
    questions_from,
)
from app.interview.phases import PhaseController

QUESTIONS = (
    Question("Tell me about a time you led a project.", "behavioral"),
    Question("How would you design a rate limiter?", "technical"),
    Question("Why do you want this role?"),
)


def identity(**overrides):
    values = dict(
        session_id="sess-42",
        candidate_name="Jordan",
        company_name="Acme",
        job_title="Backend Engineer",
        questions=QUESTIONS,
    )
    values.update(overrides)
    return SessionIdentity(**values)


class TestModels:
    """Identity, persona and phase parsing."""

    def test_identity_requires_session_id(self):
        with pytest.raises(ValueError):
            identity(session_id="")

    def test_identity_questions_are_immutable(self):
        session_identity = identity(questions=[Question("Q1")])
        assert session_identity.questions == (Question("Q1"),)
        assert session_identity.total_questions == 1

    @pytest.mark.parametrize("dial", ["warmth", "strictness"])
    @pytest.mark.parametrize("value", [0, 11])
    def test_persona_dials_bounded(self, dial, value):
        with pytest.raises(ValueError, match=dial):
            PersonaConfig(**{dial: value})

    def test_persona_from_dict(self):
        persona = PersonaConfig.from_dict({
            "name": "Sam",
            "style": "direct",
            "warmth": "3",
            "backchannelFrequency": "high",
        })
        assert persona.name == "Sam"
        assert persona.title == "Senior Hiring Manager"
        assert persona.style == InterviewStyle.DIRECT
        assert persona.warmth == 3
        assert persona.backchannel == BackchannelFrequency.HIGH

    def test_question_from_dict(self):
        question = Question.from_dict({"text": "Why?", "type": "motivation", "tips": ["Be honest"]})
        assert question == Question("Why?", "motivation", ("Be honest",))

    def test_questions_from_api_payload(self):
        questions = questions_from([
            {"text": "Q1", "category": "technical", "tips": []},
            {"text": "Q2"},
        ])
        assert questions == (Question("Q1", "technical"), Question("Q2"))

    def test_parse_phase(self):
        assert parse_phase("QUESTIONS") == InterviewPhase.QUESTIONS
        assert parse_phase(InterviewPhase.GOODBYE) == InterviewPhase.GOODBYE
        with pytest.raises(ValueError, match="Unknown interview phase"):
            parse_phase("lunch")


class TestInterviewInstructions:
    """Directive composition."""

    def test_contains_identity_and_context(self):
        text = build_interview_instructions(PersonaConfig(name="Alex"), identity())

        assert "You are Alex, a Senior Hiring Manager." in text
        assert "- Candidate Name: Jordan" in text
        assert "- Company: Acme" in text
        assert "- Position: Backend Engineer" in text
        assert "Warmth Level: 6/10 (balanced and professional)" in text

    def test_numbered_questions_with_categories(self):
        text = build_interview_instructions(PersonaConfig(), identity())

        assert "You will ask the following 3 questions in order:" in text
        assert "1. [BEHAVIORAL] Tell me about a time you led a project." in text
        assert "2. [TECHNICAL] How would you design a rate limiter?" in text
        assert "3. [GENERAL] Why do you want this role?" in text

    def test_no_questions(self):
        text = build_interview_instructions(PersonaConfig(), identity(questions=()))
        assert "No questions have been prepared." in text
        assert "Current question index: 0 of 0" in text

    def test_missing_company_and_role(self):
        text = build_interview_instructions(PersonaConfig(), identity(company_name=None, job_title=None))
        assert "- Company: a leading company" in text
        assert "- Position: the role" in text

    def test_phase_and_index(self):
        text = build_interview_instructions(PersonaConfig(), identity(), InterviewPhase.QUESTIONS, 2)
        assert "Current phase: QUESTIONS" in text
        assert "Current question index: 2 of 3" in text

    def test_deterministic(self):
        persona = PersonaConfig(style=InterviewStyle.WARM, backchannel=BackchannelFrequency.LOW)
        first = build_interview_instructions(persona, identity(), InterviewPhase.WRAP_UP, 3)
        second = build_interview_instructions(persona, identity(), InterviewPhase.WRAP_UP, 3)
        assert first == second

    def test_style_and_backchannel_change_text(self):
        friendly = build_interview_instructions(
            PersonaConfig(style=InterviewStyle.FRIENDLY, backchannel=BackchannelFrequency.HIGH), identity()
        )
        direct = build_interview_instructions(
            PersonaConfig(style=InterviewStyle.DIRECT, backchannel=BackchannelFrequency.LOW), identity()
        )
        assert friendly != direct
        assert "Mm-hmm" in friendly
        assert "pointed follow-up" in direct

    def test_mentions_all_functions(self):
        text = build_interview_instructions(PersonaConfig(), identity())
        for name in ("save_candidate_answer", "advance_phase", "end_interview"):
            assert name in text

    @pytest.mark.parametrize("phase, index, action", [
        (InterviewPhase.QUESTIONS, 0, "Next action: Ask question 1"),
        (InterviewPhase.WRAP_UP, 3, "Next action: Ask if the candidate has any questions for you"),
        (InterviewPhase.GOODBYE, 3, "Next action: Thank the candidate and end the interview"),
    ])
    def test_phase_update(self, phase, index, action):
        text = build_phase_update_instructions(phase, index, 3)
        assert text.startswith(f"Current phase has changed to: {phase.name}")
        assert f"Current question index: {index} of 3" in text
        assert text.endswith(action)

    def test_phase_update_without_action(self):
        text = build_phase_update_instructions(InterviewPhase.SMALL_TALK, 0, 3)
        assert "Next action" not in text

    def test_questions_done_has_no_next_question(self):
        text = build_phase_update_instructions(InterviewPhase.QUESTIONS, 3, 3)
        assert "Ask question" not in text

    def test_greeting(self):
        text = build_greeting_instruction("Jordan")
        assert text.startswith("Greet Jordan warmly.")


class TestPhaseController:
    """Phase and question index bookkeeping."""

    def test_starts_at_welcome(self):
        controller = PhaseController(3)
        assert controller.phase == InterviewPhase.WELCOME
        assert controller.question_index == 0

    def test_advance_notifies(self):
        changes = []
        controller = PhaseController(3)
        controller.add_listener(lambda prev, phase, reason: changes.append((prev, phase, reason)))

        assert controller.advance("questions", "small talk done") == InterviewPhase.QUESTIONS

        assert controller.phase == InterviewPhase.QUESTIONS
        assert controller.question_index == 0
        assert changes == [(InterviewPhase.WELCOME, InterviewPhase.QUESTIONS, "small talk done")]

    def test_initial_phase_is_not_a_target(self):
        controller = PhaseController(3)
        with pytest.raises(ValueError):
            controller.advance("welcome")
        assert controller.phase == InterviewPhase.WELCOME

    def test_unknown_phase(self):
        controller = PhaseController(3)
        with pytest.raises(ValueError, match="Unknown interview phase"):
            controller.advance("lunch")

    def test_backwards_move_is_applied_with_warning(self, caplog):
        controller = PhaseController(3)
        controller.advance("wrap_up")

        with caplog.at_level(logging.WARNING, logger="app.interview.phases"):
            controller.advance("questions")

        assert controller.phase == InterviewPhase.QUESTIONS
        assert "Non-monotonic" in caplog.text

    def test_record_answer_is_bounded(self):
        controller = PhaseController(3)
        assert controller.record_answer(0) == 1
        assert controller.record_answer(0) == 1
        assert controller.record_answer(2) == 3
        assert controller.record_answer(7) == 3

    def test_record_answer_rejects_negative(self):
        with pytest.raises(ValueError):
            PhaseController(3).record_answer(-1)

    def test_snapshot(self):
        controller = PhaseController(2)
        controller.advance("questions")
        controller.record_answer(0)
        assert controller.snapshot() == {"phase": "questions", "question_index": 1, "total_questions": 2}
