"""Translation between discord.py objects and conversation events/replies."""

from __future__ import annotations

import io
import logging
from typing import Callable, Optional, Sequence

import discord

from .constants import MAX_MESSAGE_LENGTH
from .conversation.events import Event, EventKind, ReplyTarget, parse_command
from .conversation.replies import Controls, EditMessage, Responder, SendMessage
from .errors import DeliveryError

log = logging.getLogger("captionbot.discord_adapter")

ViewFactory = Callable[[Controls], Optional[discord.ui.View]]


def clip(text: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def image_urls(attachments: Sequence[discord.Attachment]) -> tuple[str, ...]:
    return tuple(a.url for a in attachments if (a.content_type or "").startswith("image/"))


def _reply_target(message: discord.Message) -> Optional[ReplyTarget]:
    ref = message.reference
    if ref is None:
        return None
    resolved = ref.resolved
    if resolved is not None and not isinstance(resolved, discord.DeletedReferencedMessage):
        return ReplyTarget(message_id=resolved.id, text=resolved.content, photos=image_urls(resolved.attachments))
    if ref.message_id is not None:
        # Not in cache or deleted: still a reply, but without a usable photo.
        return ReplyTarget(message_id=ref.message_id)
    return None


def event_from_message(message: discord.Message, prefixes: Sequence[str]) -> Optional[Event]:
    if message.author.bot:
        return None

    parsed = parse_command(message.content, prefixes)
    return Event(
        kind=EventKind.COMMAND if parsed else EventKind.MESSAGE,
        chat_id=message.channel.id,
        user_id=message.author.id,
        is_private=message.guild is None,
        message_id=message.id,
        text=message.content,
        command=parsed[0] if parsed else None,
        args=parsed[1] if parsed else "",
        photos=image_urls(message.attachments),
        reply_to=_reply_target(message),
    )


def event_from_interaction(interaction: discord.Interaction, button_id: str) -> Optional[Event]:
    if interaction.channel_id is None:
        return None
    return Event(
        kind=EventKind.BUTTON,
        chat_id=interaction.channel_id,
        user_id=interaction.user.id,
        is_private=interaction.guild_id is None,
        message_id=interaction.message.id if interaction.message is not None else None,
        button_id=button_id,
    )


class DiscordResponder(Responder):
    """Sends and edits messages in the channel an event came from.

    For button events the interaction is answered by editing the pressed
    message in place, which also acknowledges the press.
    """

    def __init__(
        self,
        channel: discord.abc.Messageable,
        view_factory: ViewFactory,
        interaction: Optional[discord.Interaction] = None,
    ) -> None:
        self._channel = channel
        self._view_factory = view_factory
        self._interaction = interaction

    async def send(self, chat_id: int, message: SendMessage) -> Optional[int]:
        kwargs: dict = {}
        view = self._view_factory(message.controls)
        if view is not None:
            kwargs["view"] = view
        if message.image is not None:
            kwargs["file"] = discord.File(io.BytesIO(message.image), filename=message.image_name)
        if message.reply_to is not None:
            kwargs["reference"] = discord.MessageReference(
                message_id=message.reply_to, channel_id=chat_id, fail_if_not_exists=False
            )
        try:
            sent = await self._channel.send(content=clip(message.text) or None, **kwargs)
        except discord.HTTPException as e:
            raise DeliveryError(f"send message to {chat_id}: {e}") from e
        return sent.id

    async def edit(self, chat_id: int, message: EditMessage) -> None:
        view = self._view_factory(message.controls)
        content = clip(message.text)
        interaction = self._interaction
        try:
            if (
                interaction is not None
                and not interaction.response.is_done()
                and interaction.message is not None
                and interaction.message.id == message.message_id
            ):
                await interaction.response.edit_message(content=content, view=view)
            else:
                await self._channel.get_partial_message(message.message_id).edit(content=content, view=view)
        except discord.HTTPException as e:
            raise DeliveryError(f"edit message {message.message_id} in {chat_id}: {e}") from e
