"""aiohttp-based oEmbed client."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from sitegraft.core.errors import EmbedError
from sitegraft.core.interfaces import EmbedClientPort

logger = logging.getLogger(__name__)


class OEmbedClient(EmbedClientPort):
    """Fetches oEmbed documents over HTTP with a per-request timeout.

    One ``aiohttp.ClientSession`` is shared across a build; ``connect`` opens
    it and ``disconnect`` closes it. Calling ``fetch`` without a session
    raises ``EmbedError``.
    """

    def __init__(self, endpoint: str, timeout: float = 30.0) -> None:
        self._endpoint = endpoint
        self._timeout = timeout
        self._session: Any = None

    async def connect(self) -> None:
        """Open the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )

    async def disconnect(self) -> None:
        """Close the HTTP session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def fetch(self, target_url: str, height: int) -> str:
        """GET the oEmbed document for ``target_url``.

        Non-2xx responses still return their body; the resolver decides
        whether it is usable.
        """
        if self._session is None:
            raise EmbedError("Not connected. Call connect() first.")

        params = {"format": "json", "url": target_url, "height": str(height)}
        try:
            async with self._session.get(self._endpoint, params=params) as response:
                body = await response.text()
                if response.status >= 400:
                    logger.debug("oEmbed HTTP %d for %s", response.status, target_url)
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EmbedError(f"oEmbed request failed for {target_url}: {e}") from e
