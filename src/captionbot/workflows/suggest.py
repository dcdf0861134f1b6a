from __future__ import annotations

import logging

from ..constants import BOT_COMMANDS, MESSAGES
from ..conversation.predicates import all_of, command, free_text, is_private
from ..conversation.router import Handler, HandlerContext, Workflow
from ..conversation.state import IDLE
from ..errors import CaptionBotError, DeliveryError, DuplicateCaptionError
from ..services.moderation_queue import ModerationQueue

log = logging.getLogger("captionbot.workflows.suggest")

ENTERING_CAPTION = "entering_caption"


class SuggestWorkflow:
    """``/suggest`` → caption text → submitted for moderation.

    A duplicate keeps the conversation in ``entering_caption`` so the user can
    try another text; any other outcome ends it.
    """

    name = "suggest_caption"

    def __init__(self, queue: ModerationQueue) -> None:
        self._queue = queue

    def build(self) -> Workflow:
        return Workflow(
            name=self.name,
            states={
                IDLE: [Handler("suggest", all_of(command("suggest"), is_private()), self.start)],
                ENTERING_CAPTION: [Handler("suggest_enter_caption", free_text(BOT_COMMANDS), self.enter_caption)],
            },
            fallbacks=[Handler("suggest_cancel", command("cancel"), self.cancel)],
        )

    async def start(self, ctx: HandlerContext) -> None:
        try:
            await ctx.reply(MESSAGES["suggest_prompt"])
        except DeliveryError:
            log.exception("Failed to send suggest prompt to %s", ctx.key)
            return
        ctx.set_label(ENTERING_CAPTION)

    async def enter_caption(self, ctx: HandlerContext) -> None:
        clear_state = True
        text = MESSAGES["suggest_submitted"]

        try:
            await self._queue.submit(ctx.event.text, ctx.event.user_id)
        except DuplicateCaptionError:
            text = MESSAGES["suggest_failed"].format(detail=MESSAGES["suggest_duplicate"])
            clear_state = False
        except CaptionBotError as e:
            log.error("Enter caption failed for %s: %s", ctx.key, e)
            text = MESSAGES["suggest_failed"].format(detail=MESSAGES["unknown_error"])

        # The submission outcome is final; the state follows it even if the reply is lost.
        if clear_state:
            ctx.clear()

        try:
            await ctx.reply(text)
        except DeliveryError:
            log.exception("Failed to send suggest result to %s", ctx.key)

    async def cancel(self, ctx: HandlerContext) -> None:
        ctx.clear()
        try:
            await ctx.reply(MESSAGES["suggest_cancelled"])
        except DeliveryError:
            log.exception("Failed to acknowledge suggest cancel for %s", ctx.key)
