"""
Pytest fixtures for E2E tests.

Provides common test fixtures including:
- FastAPI app instance with a fresh interview store
- Synchronous test client
- Stand-in for the remote ephemeral-token endpoint
- Sample interview payloads
"""

import pytest
from fastapi.testclient import TestClient

from app.interview.issuer import EphemeralToken
from app.interview.store import InterviewStore
from lib.realtime_voice_framework.core.errors import SessionIssuerError


class StubTokenIssuer:
    """Records requested voices; optionally refuses."""

    def __init__(self, error: Exception = None):
        self.error = error
        self.voices = []

    async def create(self, voice: str) -> EphemeralToken:
        self.voices.append(voice)
        if self.error is not None:
            raise self.error
        return EphemeralToken(value=f"ek_test_{len(self.voices)}", expires_at=1760000000)


@pytest.fixture(scope="module")
def app():
    """Get FastAPI app instance."""
    from main import app
    return app


@pytest.fixture
def store():
    return InterviewStore()


@pytest.fixture
def token_issuer():
    return StubTokenIssuer()


@pytest.fixture
def sync_client(app, store, token_issuer):
    """Test client with the store and token issuer swapped for test instances."""
    from app.api import get_store, get_token_issuer

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def refusing_issuer():
    return StubTokenIssuer(error=SessionIssuerError("Failed to create ephemeral token: 401", status=401))


@pytest.fixture
def interview_payload():
    """Create sample interview plan."""
    return {
        "candidateName": "Jordan",
        "companyName": "Acme",
        "jobTitle": "Backend Engineer",
        "interviewer": {
            "name": "Riley",
            "title": "Engineering Manager",
            "style": "direct",
            "warmth": 4,
            "strictness": 8,
            "backchannel": "low",
            "gender": "male",
        },
        "questions": [
            {"text": "Tell me about a time you led a project.", "category": "behavioral"},
            {"text": "How would you design a rate limiter?", "category": "technical"},
        ],
    }


@pytest.fixture
def create_interview(sync_client, interview_payload):
    """Create an interview and return its id."""
    def _create(payload=None):
        response = sync_client.post("/api/mock/create", json=interview_payload if payload is None else payload)
        assert response.status_code == 200
        return response.json()["data"]["id"]
    return _create
