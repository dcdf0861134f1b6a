from __future__ import annotations

import logging

import discord

from ..conversation.events import Event

log = logging.getLogger("captionbot.operator_log")


class OperatorLogger:
    """Report handler failures to the bot operator.

    Every report is logged; when an owner id is configured it is also sent to
    the owner by direct message.
    """

    def __init__(self, bot: discord.Client, owner_id: int = 0) -> None:
        self._bot = bot
        self._owner_id = owner_id

    async def report(self, event: Event, handler_name: str, error: BaseException) -> None:
        message = (
            f"Handler `{handler_name}` failed for chat {event.chat_id} user {event.user_id}: "
            f"{type(error).__name__}: {error}"
        )
        log.error(message)
        if not self._owner_id:
            return
        try:
            owner = self._bot.get_user(self._owner_id) or await self._bot.fetch_user(self._owner_id)
            await owner.send(message[:2000])
        except discord.HTTPException:
            log.exception("Failed to send operator report to %s", self._owner_id)
