"""
Unit tests for the in-memory interview store and the ephemeral token issuer.
"""

import pytest
from aiohttp import web

from fakes import serve
from app.interview.issuer import EphemeralTokenIssuer, select_voice
from app.interview.models import InterviewPhase, InterviewStyle, Question
from app.interview.store import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_PLANNED,
    InterviewNotFoundError,
    InterviewStore,
    score_for,
)
from lib.realtime_voice_framework.core.errors import CredentialMissingError, SessionIssuerError


@pytest.fixture
def store():
    return InterviewStore()


@pytest.fixture
def record(store):
    return store.create(
        candidate_name="Jordan",
        company_name="Acme",
        job_title="Backend Engineer",
        questions=[Question("Q1"), Question("Q2", "technical")],
    )


class TestInterviewStore:
    """Interview lifecycle in the store."""

    def test_create_and_get(self, store, record):
        assert store.get(record.id) is record
        assert record.status == STATUS_PLANNED
        assert record.phase == InterviewPhase.WELCOME
        assert len(store) == 1

    def test_get_unknown(self, store):
        with pytest.raises(InterviewNotFoundError):
            store.get("missing")

    def test_start(self, store, record):
        store.start(record.id)
        assert record.status == STATUS_IN_PROGRESS
        started = record.started_at

        store.start(record.id)
        assert record.started_at == started

    def test_save_answer(self, store, record):
        result = store.save_answer(record.id, 1, "Used a token bucket", used_star_method=False, quality="strong")

        assert result == {"success": True, "questionIndex": 1, "nextQuestionIndex": 2}
        assert record.answers[1].summary == "Used a token bucket"
        assert record.scores[1] == 8
        assert record.question_index == 2

    def test_save_answer_out_of_range(self, store, record):
        with pytest.raises(ValueError, match="Question not found"):
            store.save_answer(record.id, 2, "Too far")

    def test_advance_phase(self, store, record):
        assert store.advance_phase(record.id, "wrap_up") == {"success": True, "phase": "wrap_up"}
        assert record.phase == InterviewPhase.WRAP_UP

    def test_end(self, store, record):
        result = store.end(record.id, "completed", "Clear and concise")

        assert result["status"] == STATUS_COMPLETED
        assert record.status == STATUS_COMPLETED
        assert record.phase == InterviewPhase.COMPLETED
        assert record.feedback_summary == "Clear and concise"
        assert record.completed_at is not None

    def test_to_dict(self, store, record):
        store.save_answer(record.id, 0, "Answer", quality="average")
        data = record.to_dict()

        assert data["candidateName"] == "Jordan"
        assert data["questions"][1] == {"text": "Q2", "category": "technical", "tips": []}
        assert data["currentQuestionIndex"] == 1
        assert data["answers"][0]["score"] == 5
        assert data["interviewer"]["name"] == "Alex"

    @pytest.mark.parametrize("quality, score", [("strong", 8), ("average", 5), ("weak", 3), (None, 3)])
    def test_scores(self, quality, score):
        assert score_for(quality) == score


class TestSelectVoice:
    """Voice choice from the interviewer persona."""

    @pytest.mark.parametrize("style, gender, voice", [
        (InterviewStyle.FRIENDLY, "female", "coral"),
        (InterviewStyle.PROFESSIONAL, "female", "shimmer"),
        (InterviewStyle.DIRECT, "male", "echo"),
        ("warm", "male", "verse"),
        (None, "female", "marin"),
        (None, "male", "cedar"),
    ])
    def test_style_and_gender(self, style, gender, voice):
        assert select_voice(style, gender) == voice

    def test_explicit_voice_wins(self):
        assert select_voice(InterviewStyle.DIRECT, "male", explicit="sage") == "sage"


class TestEphemeralTokenIssuer:
    """Client secret minting against a local stand-in of the sessions endpoint."""

    @pytest.mark.asyncio
    async def test_create(self):
        received = []

        async def sessions(request):
            received.append((request.headers.get("Authorization"), await request.json()))
            return web.json_response({"client_secret": {"value": "ek_live", "expires_at": 1760000000}})

        async with serve(("POST", "/v1/realtime/sessions", sessions)) as server:
            issuer = EphemeralTokenIssuer(
                api_key="sk-test",
                model="gpt-realtime",
                sessions_url=str(server.make_url("/v1/realtime/sessions")),
            )
            token = await issuer.create("ash")

        assert token.value == "ek_live"
        assert token.expires_at == 1760000000
        assert received == [(
            "Bearer sk-test",
            {"model": "gpt-realtime", "voice": "ash", "modalities": ["text", "audio"]},
        )]

    @pytest.mark.asyncio
    async def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(SessionIssuerError, match="OPENAI_API_KEY"):
            await EphemeralTokenIssuer(api_key="").create("ash")

    @pytest.mark.asyncio
    async def test_refused(self):
        async def sessions(request):
            return web.json_response({"error": {"message": "bad key"}}, status=401)

        async with serve(("POST", "/v1/realtime/sessions", sessions)) as server:
            issuer = EphemeralTokenIssuer(api_key="sk-bad", sessions_url=str(server.make_url("/v1/realtime/sessions")))
            with pytest.raises(SessionIssuerError) as exc_info:
                await issuer.create("ash")

        assert exc_info.value.status == 401

    @pytest.mark.asyncio
    async def test_no_client_secret(self):
        async def sessions(request):
            return web.json_response({"id": "sess_1"})

        async with serve(("POST", "/v1/realtime/sessions", sessions)) as server:
            issuer = EphemeralTokenIssuer(api_key="sk-test", sessions_url=str(server.make_url("/v1/realtime/sessions")))
            with pytest.raises(CredentialMissingError):
                await issuer.create("ash")
