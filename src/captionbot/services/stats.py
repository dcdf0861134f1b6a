from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class RuntimeStats:
    started_at: float = field(default_factory=time.time)
    events_dispatched: int = 0
    events_unmatched: int = 0
    handler_failures: int = 0
    captions_submitted: int = 0
    captions_approved: int = 0
    captions_rejected: int = 0
    captions_drawn: int = 0

    def uptime_seconds(self) -> int:
        return int(time.time() - self.started_at)
