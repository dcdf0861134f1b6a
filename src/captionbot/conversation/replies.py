from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Control:
    label: str
    button_id: str


# Rows of inline buttons.
Controls = tuple[tuple[Control, ...], ...]


@dataclass(frozen=True)
class SendMessage:
    text: str = ""
    controls: Controls = ()
    image: Optional[bytes] = None
    image_name: str = "image.png"
    reply_to: Optional[int] = None


@dataclass(frozen=True)
class EditMessage:
    message_id: int
    text: str
    controls: Controls = ()


class Responder(ABC):
    """Outbound side of the transport.

    Implementations raise :class:`captionbot.errors.DeliveryError` when the
    message cannot be delivered.
    """

    @abstractmethod
    async def send(self, chat_id: int, message: SendMessage) -> Optional[int]:
        """Send a new message and return its id when the transport knows it."""

    @abstractmethod
    async def edit(self, chat_id: int, message: EditMessage) -> None:
        """Replace the text and controls of an existing message."""
