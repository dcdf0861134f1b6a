"""Composable event predicates.

A predicate is a pure function of the inbound event and the conversation's
current state snapshot.
"""

from __future__ import annotations

from typing import Callable, Collection

from .events import Event, EventKind
from .state import ConversationState

Predicate = Callable[[Event, ConversationState], bool]


def any_event() -> Predicate:
    return lambda event, state: True


def command(name: str) -> Predicate:
    name = name.lower()

    def check(event: Event, state: ConversationState) -> bool:
        return event.kind is EventKind.COMMAND and event.command == name

    return check


def commands(*names: str) -> Predicate:
    wanted = {n.lower() for n in names}

    def check(event: Event, state: ConversationState) -> bool:
        return event.kind is EventKind.COMMAND and event.command in wanted

    return check


def button(button_id: str) -> Predicate:
    def check(event: Event, state: ConversationState) -> bool:
        return event.kind is EventKind.BUTTON and event.button_id == button_id

    return check


def free_text(reserved: Collection[str]) -> Predicate:
    """Any text the user typed, including prefixed words that are not one of ``reserved``.

    ``!wow`` parses as a command but reads as prose when nothing handles it.
    """
    names = {n.lower() for n in reserved}

    def check(event: Event, state: ConversationState) -> bool:
        if not event.text.strip():
            return False
        if event.kind is EventKind.MESSAGE:
            return True
        return event.kind is EventKind.COMMAND and event.command not in names

    return check


def is_private() -> Predicate:
    return lambda event, state: event.is_private


def sender_in(user_ids: Collection[int]) -> Predicate:
    allowed = frozenset(int(u) for u in user_ids)
    return lambda event, state: event.user_id in allowed


def all_of(*predicates: Predicate) -> Predicate:
    return lambda event, state: all(p(event, state) for p in predicates)
