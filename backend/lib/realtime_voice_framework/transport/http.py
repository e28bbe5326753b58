"""
HTTP clients used before media flows: the session issuer and the
remote service's SDP signaling endpoint.
"""

import asyncio
import json
import logging
from typing import Optional

import aiohttp

from ..core.errors import CredentialMissingError, NegotiationError, SessionIssuerError
from .base import IssuedSession, TransportConfig

logger = logging.getLogger(__name__)


class SessionIssuerClient:
    """Requests a short-lived session credential from our backend."""

    def __init__(self, config: Optional[TransportConfig] = None):
        self.config = config or TransportConfig()

    async def issue(self, session_id: str) -> IssuedSession:
        """
        Ask the issuer for a credential bound to an interview session.

        Args:
            session_id: Interview session identifier

        Returns:
            IssuedSession with token, voice and optional directive/greeting

        Raises:
            SessionIssuerError: Issuer unreachable or returned non-2xx
            CredentialMissingError: Issuer responded without a token
        """
        logger.info(f"🔑 Requesting session credential | session={session_id[:8]}...")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.config.issuer_url,
                    json={"sessionId": session_id},
                    timeout=aiohttp.ClientTimeout(total=self.config.http_timeout),
                ) as response:
                    if response.status >= 300:
                        body = await response.text()
                        message = _error_message(body) or f"Issuer returned {response.status}"
                        raise SessionIssuerError(message, status=response.status)
                    try:
                        body = await response.json(content_type=None)
                    except ValueError as e:
                        raise SessionIssuerError(
                            f"Issuer returned an undecodable body: {e}", status=response.status
                        ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SessionIssuerError(f"Session issuer unreachable: {e}") from e

        if not isinstance(body, dict):
            raise SessionIssuerError("Issuer returned a non-object body")

        issued = IssuedSession.from_response(body)
        if not issued.token:
            raise CredentialMissingError("No ephemeral token received")

        logger.info(f"✅ Session credential received | voice={issued.voice}")
        return issued


class SignalingClient:
    """Exchanges the local SDP offer for the remote service's answer."""

    def __init__(self, config: Optional[TransportConfig] = None):
        self.config = config or TransportConfig()

    async def exchange(self, sdp: str, token: str) -> str:
        """
        POST the offer as multipart form field `sdp`, return the answer SDP.

        Raises:
            NegotiationError: Non-2xx status or transport failure
        """
        # A typed part forces multipart/form-data encoding
        form = aiohttp.FormData()
        form.add_field("sdp", sdp, content_type="application/sdp")
        headers = {
            "Authorization": f"Bearer {token}",
            "OpenAI-Beta": "realtime=v1",
        }

        logger.info(f"📞 Sending SDP offer ({len(sdp)} bytes) to {self.config.signaling_endpoint}")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.config.signaling_endpoint,
                    data=form,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.config.http_timeout),
                ) as response:
                    text = await response.text()
                    if response.status >= 300:
                        logger.error(f"❌ SDP exchange failed: {response.status} {text[:300]}")
                        raise NegotiationError(
                            f"Realtime connection failed: {response.status} {text}",
                            status=response.status,
                            body=text,
                        )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NegotiationError(f"Signaling endpoint unreachable: {e}") from e

        logger.info("✅ Got SDP answer")
        return text


def _error_message(body: str) -> Optional[str]:
    """Pull `error` out of a JSON error body, if there is one."""
    try:
        payload = json.loads(body)
    except ValueError:
        return body.strip() or None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return error.get("message")
        if error:
            return str(error)
    return None
