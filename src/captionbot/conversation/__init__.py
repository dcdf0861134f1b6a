"""Transport independent conversation engine.

Inbound events are matched against an ordered list of handlers; workflow
handlers are scoped by the conversation's current state label.
"""

from .events import ConversationKey, Event, EventKind, ReplyTarget, parse_command
from .replies import Control, Controls, EditMessage, Responder, SendMessage
from .router import HandlerContext, Handler, Router, Workflow
from .state import ConversationState, StateStore

__all__ = [
    "ConversationKey",
    "ConversationState",
    "Control",
    "Controls",
    "EditMessage",
    "Event",
    "EventKind",
    "Handler",
    "HandlerContext",
    "ReplyTarget",
    "Responder",
    "Router",
    "SendMessage",
    "StateStore",
    "Workflow",
    "parse_command",
]
