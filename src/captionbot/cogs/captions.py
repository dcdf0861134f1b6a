from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import discord
from discord.ext import commands

from ..conversation.replies import Controls
from ..discord_adapter import DiscordResponder, event_from_interaction, event_from_message
from ..ui.controls import ControlsView, build_view
from ..workflows.approve import REVIEW_CONTROLS

if TYPE_CHECKING:
    from ..bot import CaptionBot

log = logging.getLogger("captionbot.cogs.captions")


class CaptionsCog(commands.Cog):
    """Feeds messages and button presses into the conversation router."""

    def __init__(self, bot: "CaptionBot") -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        # Persistent registration keeps review buttons routed after a restart.
        self.bot.add_view(ControlsView(REVIEW_CONTROLS, self.on_button))
        log.info("Loaded %s", self.__class__.__name__)

    def _view(self, controls: Controls) -> Optional[discord.ui.View]:
        return build_view(controls, self.on_button)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        event = event_from_message(message, self.bot.settings.command_prefixes)
        if event is None:
            return
        await self.bot.router.dispatch(event, DiscordResponder(message.channel, self._view))

    async def on_button(self, interaction: discord.Interaction, button_id: str) -> None:
        event = event_from_interaction(interaction, button_id)
        if event is not None and interaction.channel is not None:
            responder = DiscordResponder(interaction.channel, self._view, interaction)
            await self.bot.router.dispatch(event, responder)

        # Presses nobody handled (stale buttons, lost state) still need an acknowledgement.
        if not interaction.response.is_done():
            try:
                await interaction.response.defer()
            except discord.HTTPException:
                log.warning("Failed to acknowledge button %s", button_id)
