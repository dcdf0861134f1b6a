from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Collection

from ..constants import (
    APPROVE_BUTTON_ID,
    BUTTON_LABELS,
    CANCEL_BUTTON_ID,
    MESSAGES,
    REJECT_BUTTON_ID,
    REVIEW_TEMPLATE,
)
from ..conversation.predicates import all_of, button, command, is_private, sender_in
from ..conversation.replies import Control, Controls
from ..conversation.router import Handler, HandlerContext, Workflow
from ..conversation.state import IDLE
from ..errors import CaptionBotError, CaptionNotFoundError, DeliveryError
from ..models import Caption
from ..services.moderation_queue import ModerationQueue

log = logging.getLogger("captionbot.workflows.approve")

APPROVING_CAPTIONS = "approving_captions"
REVIEW_VALUE = "review"

REVIEW_CONTROLS: Controls = (
    (
        Control(BUTTON_LABELS[APPROVE_BUTTON_ID], APPROVE_BUTTON_ID),
        Control(BUTTON_LABELS[REJECT_BUTTON_ID], REJECT_BUTTON_ID),
    ),
    (Control(BUTTON_LABELS[CANCEL_BUTTON_ID], CANCEL_BUTTON_ID),),
)


@dataclass(frozen=True)
class ReviewBatch:
    """Pending captions fetched when a review session started, plus a cursor."""

    captions: tuple[Caption, ...]
    cursor: int = 0

    @property
    def total(self) -> int:
        return len(self.captions)

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.cursor)

    @property
    def exhausted(self) -> bool:
        return self.cursor >= self.total

    @property
    def current(self) -> Caption:
        if self.exhausted:
            raise IndexError("review batch is exhausted")
        return self.captions[self.cursor]

    def advanced(self) -> "ReviewBatch":
        return replace(self, cursor=self.cursor + 1)


def render_review(batch: ReviewBatch) -> tuple[str, Controls]:
    """Message text and controls for the caption under the cursor."""
    if batch.exhausted:
        return MESSAGES["review_finished"], ()

    caption = batch.current
    text = REVIEW_TEMPLATE.format(
        remaining=batch.remaining,
        total=batch.total,
        text=caption.text,
        author_id=caption.author_id,
        created_at=caption.created_at_rfc3339,
    )
    return text, REVIEW_CONTROLS


class ApproveWorkflow:
    """Administrators page through pending captions one at a time.

    The batch is read once when the session starts. Decisions made meanwhile by
    other sessions are not reflected in it; acting on a caption that was
    rejected elsewhere fails with NotFound and leaves the cursor where it is.
    """

    name = "approve_captions"

    def __init__(self, queue: ModerationQueue, admin_ids: Collection[int], page_size: int) -> None:
        self._queue = queue
        self._admin_ids = frozenset(admin_ids)
        self._page_size = page_size

    def build(self) -> Workflow:
        return Workflow(
            name=self.name,
            states={
                IDLE: [
                    Handler(
                        "approve",
                        all_of(command("approve"), is_private(), sender_in(self._admin_ids)),
                        self.start,
                    )
                ],
                APPROVING_CAPTIONS: [
                    Handler("approve_caption", button(APPROVE_BUTTON_ID), self.approve_current),
                    Handler("reject_caption", button(REJECT_BUTTON_ID), self.reject_current),
                ],
            },
            fallbacks=[
                Handler("approve_cancel", button(CANCEL_BUTTON_ID), self.cancel),
                Handler("approve_cancel_command", command("cancel"), self.cancel_command),
            ],
        )

    async def start(self, ctx: HandlerContext) -> None:
        try:
            captions = await self._queue.list_pending(self._page_size)
        except CaptionBotError as e:
            log.error("Listing pending captions failed: %s", e)
            await self._safe_reply(ctx, MESSAGES["unknown_error"])
            return

        if not captions:
            await self._safe_reply(ctx, MESSAGES["review_empty"])
            return

        batch = ReviewBatch(tuple(captions))
        text, controls = render_review(batch)
        try:
            await ctx.reply(text, controls)
        except DeliveryError:
            log.exception("Failed to send review message to %s", ctx.key)
            return

        ctx.put_value(REVIEW_VALUE, batch)
        ctx.set_label(APPROVING_CAPTIONS)

    async def approve_current(self, ctx: HandlerContext) -> None:
        await self._decide(ctx, self._queue.approve)

    async def reject_current(self, ctx: HandlerContext) -> None:
        await self._decide(ctx, self._queue.reject)

    async def _decide(self, ctx: HandlerContext, decision: Callable[[str], Awaitable[None]]) -> None:
        batch = ctx.value(REVIEW_VALUE, ReviewBatch)
        if batch.exhausted:
            ctx.clear()
            return

        caption = batch.current
        try:
            await decision(caption.id)
        except CaptionNotFoundError:
            log.warning("Caption %s disappeared during review in %s", caption.id, ctx.key)
            return
        except CaptionBotError as e:
            # The cursor stays put; pressing the button again retries the same caption.
            log.error("Review decision on %s failed: %s", caption.id, e)
            await self._safe_reply(ctx, MESSAGES["unknown_error"])
            return

        batch = batch.advanced()
        if batch.exhausted:
            ctx.clear()
        else:
            ctx.put_value(REVIEW_VALUE, batch)

        text, controls = render_review(batch)
        try:
            await ctx.edit(text, controls)
        except DeliveryError:
            log.exception("Failed to update review message in %s", ctx.key)

    async def cancel(self, ctx: HandlerContext) -> None:
        ctx.clear()
        try:
            await ctx.edit(MESSAGES["review_cancelled"])
        except DeliveryError:
            log.exception("Failed to acknowledge approve cancel in %s", ctx.key)

    async def cancel_command(self, ctx: HandlerContext) -> None:
        # A typed /cancel is a new message; the review message keeps its buttons.
        ctx.clear()
        await self._safe_reply(ctx, MESSAGES["review_cancelled"])

    @staticmethod
    async def _safe_reply(ctx: HandlerContext, text: str) -> None:
        try:
            await ctx.reply(text)
        except DeliveryError:
            log.exception("Failed to reply in %s", ctx.key)
