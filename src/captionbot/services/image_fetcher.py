from __future__ import annotations

import logging
from typing import Optional

import aiohttp

from ..constants import DEFAULT_MAX_IMAGE_BYTES
from ..errors import RenderError

log = logging.getLogger("captionbot.image_fetcher")


class ImageFetcher:
    """Download photo attachments over HTTP."""

    def __init__(self, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES, timeout_seconds: float = 30.0) -> None:
        self._max_bytes = max_bytes
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def fetch(self, url: str) -> bytes:
        data = bytearray()
        try:
            async with self._get_session().get(url) as response:
                if response.status != 200:
                    raise RenderError(f"fetch image: status code {response.status}")
                if response.content_length is not None and response.content_length > self._max_bytes:
                    raise RenderError(f"fetch image: {response.content_length} bytes exceeds limit")
                async for chunk in response.content.iter_chunked(64 * 1024):
                    data.extend(chunk)
                    if len(data) > self._max_bytes:
                        raise RenderError("fetch image: body exceeds limit")
        except aiohttp.ClientError as e:
            raise RenderError(f"fetch image: {e}") from e
        return bytes(data)

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
