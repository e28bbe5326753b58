import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from lib.realtime_voice_framework.core.errors import PersistenceError

logger = logging.getLogger(__name__)


class ToolResponseClient:
    """Forwards interview function calls to the scoring backend."""

    def __init__(self, api_base: str = "http://localhost:8000", timeout: float = 15.0):
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def url_for(self, session_id: str) -> str:
        return f"{self.api_base}/api/mock/{session_id}/tool-response"

    async def record(self, session_id: str, tool: str, arguments: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        POST `{"tool": name, **arguments}` for a session.

        Returns:
            The decoded response body (None if it is not JSON)

        Raises:
            PersistenceError: Non-2xx status or transport failure
        """
        payload = {"tool": tool, **arguments}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.url_for(session_id),
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status >= 300:
                        text = await response.text()
                        raise PersistenceError(
                            f"Tool response {tool} rejected: {response.status} {text}",
                            status=response.status,
                        )
                    try:
                        body = await response.json(content_type=None)
                    except ValueError:
                        body = None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PersistenceError(f"Tool response {tool} failed: {e}") from e

        logger.info(f"💾 Recorded {tool} | session={session_id[:8]}...")
        return body
