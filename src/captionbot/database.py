from __future__ import annotations

import logging
from typing import Iterable

import aiosqlite

from .services.base import BaseService

log = logging.getLogger("captionbot.database")


async def initialize_database(sqlite_path: str, stores: Iterable[BaseService]) -> None:
    """Switch the file to WAL and create the tables of every store.

    ``journal_mode`` is stored in the database file, so it holds for the
    short-lived connections the stores open later.
    """
    try:
        async with aiosqlite.connect(sqlite_path) as db:
            async with db.execute("PRAGMA journal_mode=WAL") as cur:
                row = await cur.fetchone()
        log.info("Opened %s (journal_mode=%s)", sqlite_path, row[0] if row else "?")

        for store in stores:
            await store.init()
            log.debug("Created tables for %s", type(store).__name__)
    except aiosqlite.Error:
        log.exception("Database setup failed for %s", sqlite_path)
        raise
