from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Type, TypeVar, Union

from ..services.stats import RuntimeStats
from .events import ConversationKey, Event
from .predicates import Predicate
from .replies import Controls, EditMessage, Responder, SendMessage
from .state import IDLE, ConversationState, StateStore

log = logging.getLogger("captionbot.router")

T = TypeVar("T")

Action = Callable[["HandlerContext"], Awaitable[None]]
ErrorReporter = Callable[[Event, str, BaseException], Awaitable[None]]


@dataclass(frozen=True)
class Handler:
    name: str
    predicate: Predicate
    action: Action


@dataclass
class Workflow:
    """A state machine expressed as handler lists keyed by state label.

    ``states[""]`` holds the entry handlers. ``fallbacks`` (typically cancel)
    are reachable from every non-empty state this workflow declares.
    """

    name: str
    states: dict[str, list[Handler]]
    fallbacks: list[Handler] = field(default_factory=list)

    @property
    def labels(self) -> frozenset[str]:
        return frozenset(label for label in self.states if label != IDLE)

    def candidates(self, label: str) -> list[Handler]:
        handlers = list(self.states.get(label, ()))
        if label in self.labels:
            handlers.extend(self.fallbacks)
        return handlers


Entry = Union[Handler, Workflow]


class HandlerContext:
    """What a handler action sees: the event, a state snapshot and the reply channel.

    State mutations go straight to the store; they are not rolled back if the
    action fails afterwards.
    """

    def __init__(self, event: Event, state: ConversationState, store: StateStore, responder: Responder) -> None:
        self.event = event
        self.state = state
        self._store = store
        self._responder = responder

    @property
    def key(self) -> ConversationKey:
        return self.event.key

    def value(self, name: str, expected: Type[T]) -> T:
        return self.state.value(name, expected)

    def set_label(self, label: str) -> None:
        self._store.set_label(self.key, label)
        self.state.label = label

    def put_value(self, name: str, value: Any) -> None:
        self._store.put_value(self.key, name, value)
        self.state.values[name] = value

    def clear(self) -> None:
        self._store.clear(self.key)
        self.state = ConversationState()

    async def reply(
        self,
        text: str = "",
        controls: Controls = (),
        image: Optional[bytes] = None,
        image_name: str = "image.png",
        reply_to: Optional[int] = None,
    ) -> Optional[int]:
        message = SendMessage(text=text, controls=controls, image=image, image_name=image_name, reply_to=reply_to)
        return await self._responder.send(self.event.chat_id, message)

    async def edit(self, text: str, controls: Controls = ()) -> None:
        if self.event.message_id is None:
            raise ValueError("event has no message to edit")
        message = EditMessage(message_id=self.event.message_id, text=text, controls=controls)
        await self._responder.edit(self.event.chat_id, message)


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class Router:
    """First-match-wins dispatcher.

    Entries are evaluated in registration order, so registration order is the
    priority order. A plain :class:`Handler` is always active; a
    :class:`Workflow` contributes only the handlers for the conversation's
    current label. Events for the same conversation key are processed one at a
    time, in arrival order.
    """

    def __init__(
        self,
        store: StateStore,
        stats: Optional[RuntimeStats] = None,
        on_error: Optional[ErrorReporter] = None,
    ) -> None:
        self._store = store
        self._stats = stats if stats is not None else RuntimeStats()
        self._on_error = on_error
        self._entries: list[Entry] = []
        self._locks: dict[ConversationKey, _KeyLock] = {}

    @property
    def store(self) -> StateStore:
        return self._store

    def register(self, *entries: Entry) -> "Router":
        for entry in entries:
            if isinstance(entry, Workflow):
                for other in self._entries:
                    if isinstance(other, Workflow) and other.labels & entry.labels:
                        raise ValueError(
                            f"Workflow {entry.name!r} reuses state labels of {other.name!r}: "
                            f"{sorted(other.labels & entry.labels)}"
                        )
            self._entries.append(entry)
        return self

    def handlers_for(self, label: str) -> list[Handler]:
        """Handlers reachable under ``label``, in priority order."""
        handlers: list[Handler] = []
        for entry in self._entries:
            if isinstance(entry, Workflow):
                handlers.extend(entry.candidates(label))
            else:
                handlers.append(entry)
        return handlers

    def match(self, event: Event, state: ConversationState) -> Optional[Handler]:
        for handler in self.handlers_for(state.label):
            if handler.predicate(event, state):
                return handler
        return None

    @asynccontextmanager
    async def _serialized(self, key: ConversationKey) -> AsyncIterator[None]:
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._locks.pop(key, None)

    async def dispatch(self, event: Event, responder: Responder) -> Optional[Handler]:
        """Run the first matching handler; return it, or ``None`` if the event was dropped."""
        async with self._serialized(event.key):
            state = self._store.get(event.key)
            try:
                handler = self.match(event, state)
            except Exception as e:
                log.exception("Predicate failed for %s event in %s", event.kind.value, event.key)
                await self._report(event, "<match>", e)
                return None

            if handler is None:
                self._stats.events_unmatched += 1
                log.debug("Dropped %s event in %s (state %r)", event.kind.value, event.key, state.label)
                return None

            self._stats.events_dispatched += 1
            log.debug("Dispatching %s event in %s to %s", event.kind.value, event.key, handler.name)
            try:
                await handler.action(HandlerContext(event, state, self._store, responder))
            except Exception as e:
                log.exception("Handler %s failed for %s", handler.name, event.key)
                await self._report(event, handler.name, e)
            return handler

    async def _report(self, event: Event, handler_name: str, error: BaseException) -> None:
        self._stats.handler_failures += 1
        if self._on_error is None:
            return
        try:
            await self._on_error(event, handler_name, error)
        except Exception:
            log.exception("Error reporter failed")
