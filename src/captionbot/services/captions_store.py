from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import aiosqlite

from ..filters import FilterOptions
from ..models import Caption
from .base import BaseService

_COLUMNS = ("id", "text", "author_id", "approved", "created_at")
_SELECT = "SELECT id, text, author_id, approved, created_at FROM captions"


class CaptionsStore(BaseService[Caption]):
    """Row-level access to the ``captions`` table.

    No business rules live here: duplicate detection, approval and the
    not-found policy belong to :class:`ModerationQueue`.
    """

    async def _create_tables(self, db: aiosqlite.Connection) -> None:
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS captions (
              id TEXT PRIMARY KEY,
              text TEXT NOT NULL UNIQUE,
              author_id INTEGER NOT NULL,
              approved INTEGER NOT NULL DEFAULT 0,
              created_at INTEGER NOT NULL
            )
            """
        )
        await db.execute("CREATE INDEX IF NOT EXISTS idx_captions_approved ON captions(approved)")

    def _from_row(self, row: aiosqlite.Row) -> Caption:
        return Caption(
            id=row["id"],
            text=row["text"],
            author_id=int(row["author_id"]),
            approved=bool(row["approved"]),
            created_at=datetime.fromtimestamp(int(row["created_at"]), tz=timezone.utc),
        )

    @property
    def _get_query(self) -> str:
        return f"{_SELECT} WHERE id = ?"

    async def create(self, caption: Caption) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                "INSERT INTO captions (id, text, author_id, approved, created_at) VALUES (?, ?, ?, ?, ?)",
                (
                    caption.id,
                    caption.text,
                    int(caption.author_id),
                    int(caption.approved),
                    int(caption.created_at.timestamp()),
                ),
            )
            await db.commit()

    async def exists_by_text(self, text: str) -> bool:
        async with aiosqlite.connect(self._path) as db:
            async with db.execute("SELECT EXISTS (SELECT 1 FROM captions WHERE text = ?)", (text,)) as cur:
                row = await cur.fetchone()
        return bool(row[0]) if row else False

    async def get_random(self, options: Optional[FilterOptions] = None) -> Optional[Caption]:
        where, params = (options if options is not None else FilterOptions()).to_sql(_COLUMNS)
        async with aiosqlite.connect(self._path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(f"{_SELECT} {where} ORDER BY RANDOM() LIMIT 1", params) as cur:
                row = await cur.fetchone()
        return self._from_row(row) if row is not None else None

    async def select(self, count: int, offset: int = 0, options: Optional[FilterOptions] = None) -> list[Caption]:
        where, params = (options if options is not None else FilterOptions()).to_sql(_COLUMNS)
        async with aiosqlite.connect(self._path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                f"{_SELECT} {where} ORDER BY created_at, rowid LIMIT ? OFFSET ?",
                (*params, max(0, int(count)), max(0, int(offset))),
            ) as cur:
                rows = await cur.fetchall()
        return [self._from_row(row) for row in rows]

    async def set_approved(self, caption_id: str, approved: bool) -> int:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute("UPDATE captions SET approved = ? WHERE id = ?", (int(approved), caption_id))
            await db.commit()
            return int(cur.rowcount)

    async def delete(self, caption_id: str) -> int:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute("DELETE FROM captions WHERE id = ?", (caption_id,))
            await db.commit()
            return int(cur.rowcount)
