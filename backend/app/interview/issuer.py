"""
Server-side credential minting for realtime sessions.

The long-lived API key never leaves the server: the issuer endpoint trades
it for a short-lived client secret bound to one voice and model.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Optional

import aiohttp

from lib.realtime_voice_framework.core.errors import CredentialMissingError, SessionIssuerError

from .models import InterviewStyle

logger = logging.getLogger(__name__)

DEFAULT_SESSIONS_URL = "https://api.openai.com/v1/realtime/sessions"
DEFAULT_MODEL = "gpt-4o-realtime-preview"

FEMALE_VOICES = {
    InterviewStyle.FRIENDLY: "coral",
    InterviewStyle.WARM: "coral",
    InterviewStyle.PROFESSIONAL: "shimmer",
    InterviewStyle.DIRECT: "ballad",
}
MALE_VOICES = {
    InterviewStyle.FRIENDLY: "verse",
    InterviewStyle.WARM: "verse",
    InterviewStyle.PROFESSIONAL: "ash",
    InterviewStyle.DIRECT: "echo",
}


def select_voice(style=None, gender: Optional[str] = None, explicit: Optional[str] = None) -> str:
    """
    Voice for an interviewer persona.

    An explicit voice wins; otherwise the voice is picked from the
    interviewer's gender and style.
    """
    if explicit:
        return explicit
    try:
        style = InterviewStyle(style) if style is not None else None
    except ValueError:
        style = None
    if (gender or "female").lower() == "female":
        return FEMALE_VOICES.get(style, "marin")
    return MALE_VOICES.get(style, "cedar")


@dataclass
class EphemeralToken:
    value: str
    expires_at: Optional[int] = None


class EphemeralTokenIssuer:
    """Creates short-lived client secrets on the remote speech service."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        sessions_url: Optional[str] = None,
        timeout: float = 15.0,
    ):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY", "")
        self.model = model or os.getenv("REALTIME_MODEL", DEFAULT_MODEL)
        self.sessions_url = sessions_url or os.getenv("REALTIME_SESSIONS_URL", DEFAULT_SESSIONS_URL)
        self.timeout = timeout

    async def create(self, voice: str) -> EphemeralToken:
        """
        Mint a client secret for `voice`.

        Raises:
            SessionIssuerError: No API key configured, or the service refused
            CredentialMissingError: The service answered without a client secret
        """
        if not self.api_key:
            raise SessionIssuerError("OPENAI_API_KEY environment variable not set")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {"model": self.model, "voice": voice, "modalities": ["text", "audio"]}

        logger.info(f"🔑 Creating ephemeral token | voice={voice}, model={self.model}")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.sessions_url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status >= 300:
                        text = await response.text()
                        logger.error(f"❌ Failed to create ephemeral token: {response.status} {text[:300]}")
                        raise SessionIssuerError(
                            f"Failed to create ephemeral token: {response.status}",
                            status=response.status,
                        )
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SessionIssuerError(f"Realtime sessions endpoint unreachable: {e}") from e

        secret = (data or {}).get("client_secret") or {}
        if not secret.get("value"):
            raise CredentialMissingError("Realtime service returned no client secret")

        return EphemeralToken(value=secret["value"], expires_at=secret.get("expires_at"))
