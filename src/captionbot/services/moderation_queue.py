from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Optional

import aiosqlite

from ..errors import CaptionNotFoundError, DuplicateCaptionError, InternalError
from ..filters import FilterOptions, Operator
from ..models import Caption
from .captions_store import CaptionsStore
from .stats import RuntimeStats

log = logging.getLogger("captionbot.moderation_queue")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@asynccontextmanager
async def _storage_errors(operation: str) -> AsyncIterator[None]:
    try:
        yield
    except aiosqlite.Error as e:
        raise InternalError(f"{operation}: {e}") from e


class ModerationQueue:
    """Pending/approved/rejected transitions for captions.

    Every call is a single write or read against the store. Nothing ties a
    batch returned by :meth:`list_pending` to later decisions, so a reviewer
    may act on a caption another session has already decided.
    """

    def __init__(
        self,
        store: CaptionsStore,
        stats: Optional[RuntimeStats] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._stats = stats if stats is not None else RuntimeStats()
        self._clock = clock

    async def submit(self, text: str, author_id: int) -> Caption:
        async with _storage_errors("submit caption"):
            if await self._store.exists_by_text(text):
                raise DuplicateCaptionError("caption already exists")

            caption = Caption(
                id=str(uuid.uuid4()),
                text=text,
                author_id=int(author_id),
                approved=False,
                # Stored with second precision.
                created_at=self._clock().replace(microsecond=0),
            )
            try:
                await self._store.create(caption)
            except aiosqlite.IntegrityError as e:
                # Lost a race against an identical submission.
                raise DuplicateCaptionError("caption already exists") from e

        self._stats.captions_submitted += 1
        log.info("Caption %s submitted by %s", caption.id, caption.author_id)
        return caption

    async def select(self, limit: int, offset: int = 0, options: Optional[FilterOptions] = None) -> list[Caption]:
        async with _storage_errors("select captions"):
            return await self._store.select(limit, offset, options)

    async def list_pending(self, limit: int, offset: int = 0) -> list[Caption]:
        options = FilterOptions().add("approved", False, Operator.EQ)
        return await self.select(limit, offset, options)

    async def approve(self, caption_id: str) -> None:
        async with _storage_errors("approve caption"):
            updated = await self._store.set_approved(caption_id, True)
        if not updated:
            raise CaptionNotFoundError(f"caption {caption_id} not found")
        self._stats.captions_approved += 1
        log.info("Caption %s approved", caption_id)

    async def reject(self, caption_id: str) -> None:
        async with _storage_errors("reject caption"):
            deleted = await self._store.delete(caption_id)
        if not deleted:
            raise CaptionNotFoundError(f"caption {caption_id} not found")
        self._stats.captions_rejected += 1
        log.info("Caption %s rejected", caption_id)

    async def draw_approved(self) -> Caption:
        options = FilterOptions().add("approved", True, Operator.EQ)
        async with _storage_errors("draw approved caption"):
            caption = await self._store.get_random(options)
        if caption is None:
            raise CaptionNotFoundError("no approved captions")
        self._stats.captions_drawn += 1
        return caption
