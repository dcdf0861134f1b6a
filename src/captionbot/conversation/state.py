from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Type, TypeVar

from .events import ConversationKey

log = logging.getLogger("captionbot.state")

T = TypeVar("T")

IDLE = ""


@dataclass
class ConversationState:
    """State label plus working memory of one conversation.

    ``label == ""`` means no workflow is active.
    """

    label: str = IDLE
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def active(self) -> bool:
        return self.label != IDLE

    def value(self, name: str, expected: Type[T]) -> T:
        """Return a stored value, checking it has the type the caller expects."""
        try:
            stored = self.values[name]
        except KeyError:
            raise KeyError(f"conversation value {name!r} is not set") from None
        if not isinstance(stored, expected):
            raise TypeError(
                f"conversation value {name!r} is {type(stored).__name__}, expected {expected.__name__}"
            )
        return stored


class StateStore:
    """In-memory conversation state keyed by chat and initiating user.

    Records are created lazily and dropped when cleared; nothing survives a
    process restart.
    """

    def __init__(self) -> None:
        self._states: dict[ConversationKey, ConversationState] = {}

    def get(self, key: ConversationKey) -> ConversationState:
        """Return a snapshot of the state for ``key`` (``("", {})`` if unused)."""
        state = self._states.get(key)
        if state is None:
            return ConversationState()
        return ConversationState(label=state.label, values=dict(state.values))

    def _record(self, key: ConversationKey) -> ConversationState:
        state = self._states.get(key)
        if state is None:
            state = self._states[key] = ConversationState()
        return state

    def set_label(self, key: ConversationKey, label: str) -> None:
        state = self._record(key)
        log.debug("State %s: %r -> %r", key, state.label, label)
        state.label = label

    def put_value(self, key: ConversationKey, name: str, value: Any) -> None:
        self._record(key).values[name] = value

    def clear(self, key: ConversationKey) -> None:
        if self._states.pop(key, None) is not None:
            log.debug("State %s cleared", key)

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, key: object) -> bool:
        return key in self._states
