from __future__ import annotations

import pytest

from captionbot.conversation.events import ConversationKey
from captionbot.conversation.state import ConversationState, StateStore

KEY = ConversationKey(1, 2)


def test_unused_key_is_idle_and_empty():
    store = StateStore()

    state = store.get(KEY)

    assert state.label == ""
    assert state.values == {}
    assert not state.active
    assert KEY not in store


def test_label_and_values_are_kept_per_key():
    store = StateStore()
    store.set_label(KEY, "entering_caption")
    store.put_value(KEY, "cursor", 3)

    assert store.get(KEY).label == "entering_caption"
    assert store.get(KEY).values == {"cursor": 3}
    assert store.get(ConversationKey(1, 3)).label == ""


def test_get_returns_a_snapshot():
    store = StateStore()
    store.put_value(KEY, "cursor", 1)

    snapshot = store.get(KEY)
    snapshot.values["cursor"] = 99
    snapshot.label = "changed"

    assert store.get(KEY).values == {"cursor": 1}
    assert store.get(KEY).label == ""


def test_clear_resets_label_and_values_together():
    store = StateStore()
    store.set_label(KEY, "approving_captions")
    store.put_value(KEY, "review", object())

    store.clear(KEY)

    assert store.get(KEY) == ConversationState()
    assert len(store) == 0


def test_typed_value_access():
    state = ConversationState(label="x", values={"cursor": 2})

    assert state.value("cursor", int) == 2
    with pytest.raises(TypeError):
        state.value("cursor", str)
    with pytest.raises(KeyError):
        state.value("missing", int)
