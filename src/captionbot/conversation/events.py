from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Sequence


class ConversationKey(NamedTuple):
    chat_id: int
    user_id: int


class EventKind(Enum):
    COMMAND = "command"
    MESSAGE = "message"
    BUTTON = "button"


@dataclass(frozen=True)
class ReplyTarget:
    """The message an inbound message replies to."""

    message_id: int
    text: str = ""
    photos: tuple[str, ...] = ()


@dataclass(frozen=True)
class Event:
    kind: EventKind
    chat_id: int
    user_id: int
    is_private: bool = False
    message_id: Optional[int] = None
    text: str = ""
    command: Optional[str] = None
    args: str = ""
    button_id: Optional[str] = None
    # Photo references (URLs), smallest to largest.
    photos: tuple[str, ...] = ()
    reply_to: Optional[ReplyTarget] = None

    @property
    def key(self) -> ConversationKey:
        return ConversationKey(self.chat_id, self.user_id)


def parse_command(text: str, prefixes: Sequence[str]) -> Optional[tuple[str, str]]:
    """Split ``"/name args"`` into ``("name", "args")``; ``None`` if not a command."""
    stripped = text.strip()
    for prefix in prefixes:
        if not stripped.startswith(prefix):
            continue
        head, _, args = stripped[len(prefix):].partition(" ")
        # "/approve@bot" addresses a specific bot; the suffix is not part of the name.
        name = head.split("@", 1)[0].lower()
        if name and name.isidentifier():
            return name, args.strip()
    return None
