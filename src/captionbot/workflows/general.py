from __future__ import annotations

import logging
import random
from typing import Optional

from ..constants import HELP_TEXT, RENDERED_IMAGE_NAME
from ..conversation.events import Event, EventKind
from ..conversation.predicates import commands
from ..conversation.router import Handler, HandlerContext
from ..conversation.state import ConversationState
from ..errors import CaptionBotError, CaptionNotFoundError, DeliveryError
from ..services.image_fetcher import ImageFetcher
from ..services.image_service import ImageService
from ..services.moderation_queue import ModerationQueue

log = logging.getLogger("captionbot.workflows.general")


async def _send_help(ctx: HandlerContext) -> None:
    try:
        await ctx.reply(HELP_TEXT)
    except DeliveryError:
        log.exception("Failed to send help to %s", ctx.key)


def help_handler() -> Handler:
    return Handler("help", commands("start", "help"), _send_help)


def photo_target(event: Event) -> tuple[Optional[str], bool]:
    """Photo the event points at and whether it came from a replied-to message."""
    if event.reply_to is not None:
        photos = event.reply_to.photos
        return (photos[-1] if photos else None), True
    return (event.photos[-1] if event.photos else None), False


class RandomCaption:
    """Overlay a random approved caption on a photo posted in the chat.

    The trigger word always works (also when replying to a photo); otherwise a
    photo that is not a reply gets a caption with a fixed chance.
    """

    def __init__(
        self,
        queue: ModerationQueue,
        images: ImageService,
        fetcher: ImageFetcher,
        trigger: str,
        chance_percent: int,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._queue = queue
        self._images = images
        self._fetcher = fetcher
        self._trigger = trigger.strip().lower()
        self._chance_percent = chance_percent
        self._rng = rng or random.Random()

    def handler(self) -> Handler:
        return Handler("random_caption", self.matches, self.draw)

    def matches(self, event: Event, state: ConversationState) -> bool:
        if event.kind is not EventKind.MESSAGE:
            return False
        photo, is_reply = photo_target(event)
        if photo is None:
            return False
        if event.text.strip().lower() == self._trigger:
            return True
        return not is_reply and self._rng.randrange(100) < self._chance_percent

    async def draw(self, ctx: HandlerContext) -> None:
        photo, _ = photo_target(ctx.event)
        if photo is None:
            return

        try:
            caption = await self._queue.draw_approved()
        except CaptionNotFoundError:
            log.info("No approved captions to draw for chat %s", ctx.event.chat_id)
            return
        except CaptionBotError as e:
            log.error("Draw random caption failed: %s", e)
            return

        try:
            image = await self._fetcher.fetch(photo)
            rendered = await self._images.render(image, caption.text)
            await ctx.reply(image=rendered, image_name=RENDERED_IMAGE_NAME, reply_to=ctx.event.message_id)
        except CaptionBotError as e:
            log.error("Random caption for chat %s failed: %s", ctx.event.chat_id, e)
