from __future__ import annotations


class CaptionBotError(Exception):
    """Base class for errors raised by caption bot services."""


class DuplicateCaptionError(CaptionBotError):
    """A caption with identical text already exists."""


class CaptionNotFoundError(CaptionBotError):
    """The referenced caption does not exist (any more)."""


class InternalError(CaptionBotError):
    """Storage, transport or rendering failure."""


class DeliveryError(InternalError):
    """An outbound message could not be sent or edited."""


class RenderError(InternalError):
    """An image could not be fetched, decoded or drawn on."""
