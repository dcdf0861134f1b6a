from __future__ import annotations

import logging

import discord
from discord.ext import commands

from .config import Settings
from .conversation.state import StateStore
from .database import initialize_database
from .services.captions_store import CaptionsStore
from .services.image_fetcher import ImageFetcher
from .services.image_service import ImageService
from .services.moderation_queue import ModerationQueue
from .services.operator_log import OperatorLogger
from .services.stats import RuntimeStats
from .workflows import build_router

log = logging.getLogger("captionbot.bot")


class CaptionBot(commands.Bot):
    def __init__(self, settings: Settings) -> None:
        intents = discord.Intents.default()
        intents.dm_messages = True
        intents.message_content = bool(settings.message_content_intent)

        log.info("INTENTS: guilds=%s dm_messages=%s message_content=%s", intents.guilds, intents.dm_messages, intents.message_content)

        super().__init__(
            # Commands are parsed by the conversation router, not discord.ext.commands.
            command_prefix=commands.when_mentioned,
            intents=intents,
            allowed_mentions=discord.AllowedMentions(everyone=False, roles=False, users=False, replied_user=False),
            help_command=None,
        )

        self.settings = settings
        self.stats = RuntimeStats()

        self.captions_store = CaptionsStore(settings.sqlite_path)
        self.moderation_queue = ModerationQueue(self.captions_store, stats=self.stats)
        self.image_service = ImageService(settings.caption_font_path)
        self.image_fetcher = ImageFetcher(max_bytes=settings.max_image_bytes)
        self.operator_logger = OperatorLogger(self, settings.owner_id)
        self.state_store = StateStore()

        self.router = build_router(
            settings,
            self.moderation_queue,
            self.image_service,
            self.image_fetcher,
            store=self.state_store,
            stats=self.stats,
            on_error=self.operator_logger.report,
        )

    async def setup_hook(self) -> None:
        await initialize_database(self.settings.sqlite_path, [self.captions_store])

        from .cogs.captions import CaptionsCog

        await self.add_cog(CaptionsCog(self))

    async def on_ready(self) -> None:
        log.info("Logged in as %s (%s); admins=%s", self.user, getattr(self.user, "id", "?"), list(self.settings.admin_ids))

    async def close(self) -> None:
        await self.image_fetcher.close()
        log.info(
            "Shutting down after %ss: dispatched=%d unmatched=%d failures=%d",
            self.stats.uptime_seconds(),
            self.stats.events_dispatched,
            self.stats.events_unmatched,
            self.stats.handler_failures,
        )
        await super().close()
