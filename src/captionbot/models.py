from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class Caption:
    id: str
    text: str
    author_id: int
    approved: bool
    created_at: datetime

    @property
    def created_at_rfc3339(self) -> str:
        return self.created_at.astimezone(timezone.utc).isoformat(timespec="seconds")
