from __future__ import annotations

import pytest

from captionbot.constants import HELP_TEXT, MESSAGES
from captionbot.conversation.events import Event, EventKind, parse_command
from captionbot.conversation.router import Router
from captionbot.conversation.state import StateStore
from captionbot.errors import InternalError
from captionbot.testing.fakes import RecordingResponder
from captionbot.workflows.suggest import ENTERING_CAPTION, SuggestWorkflow
from tests.conftest import DM_CHAT, GROUP_CHAT, USER_ID, command_event, text_event

DUPLICATE_REPLY = MESSAGES["suggest_failed"].format(detail=MESSAGES["suggest_duplicate"])
GENERIC_REPLY = MESSAGES["suggest_failed"].format(detail=MESSAGES["unknown_error"])


class BrokenQueue:
    async def submit(self, text, author_id):
        raise InternalError("database is locked")


def label_of(state_store: StateStore) -> str:
    return state_store.get(text_event("x").key).label


@pytest.mark.asyncio
async def test_suggest_prompts_and_waits_for_caption(router, state_store, responder):
    await router.dispatch(command_event("suggest"), responder)

    assert responder.texts == [MESSAGES["suggest_prompt"]]
    assert label_of(state_store) == ENTERING_CAPTION


@pytest.mark.asyncio
async def test_suggest_is_ignored_outside_direct_messages(router, state_store, responder):
    handler = await router.dispatch(command_event("suggest", chat_id=GROUP_CHAT, private=False), responder)

    assert handler is None
    assert responder.sent == []
    assert len(state_store) == 0


@pytest.mark.asyncio
async def test_caption_is_submitted_and_state_cleared(router, state_store, responder, queue):
    await router.dispatch(command_event("suggest"), responder)
    await router.dispatch(text_event("cats are liquid"), responder)

    assert responder.texts[-1] == MESSAGES["suggest_submitted"]
    assert label_of(state_store) == ""
    pending = await queue.list_pending(10)
    assert [c.text for c in pending] == ["cats are liquid"]
    assert pending[0].approved is False


@pytest.mark.asyncio
async def test_duplicate_keeps_user_entering_caption(router, state_store, responder, queue):
    await queue.submit("foo", 99)

    await router.dispatch(command_event("suggest"), responder)
    await router.dispatch(text_event("foo"), responder)

    assert responder.texts[-1] == DUPLICATE_REPLY
    assert label_of(state_store) == ENTERING_CAPTION

    # A different text is accepted on the retry.
    await router.dispatch(text_event("bar"), responder)
    assert responder.texts[-1] == MESSAGES["suggest_submitted"]
    assert label_of(state_store) == ""


@pytest.mark.asyncio
async def test_internal_failure_reports_generic_error_and_clears_state():
    store = StateStore()
    router = Router(store).register(SuggestWorkflow(BrokenQueue()).build())
    responder = RecordingResponder()

    await router.dispatch(command_event("suggest"), responder)
    await router.dispatch(text_event("anything"), responder)

    assert responder.texts[-1] == GENERIC_REPLY
    assert label_of(store) == ""


@pytest.mark.asyncio
async def test_cancel_clears_state(router, state_store, responder, queue):
    await router.dispatch(command_event("suggest"), responder)
    await router.dispatch(command_event("cancel"), responder)

    assert responder.texts[-1] == MESSAGES["suggest_cancelled"]
    assert len(state_store) == 0
    assert await queue.list_pending(10) == []


@pytest.mark.asyncio
async def test_cancel_without_active_workflow_is_dropped(router, responder):
    assert await router.dispatch(command_event("cancel"), responder) is None
    assert responder.sent == []


@pytest.mark.asyncio
async def test_commands_are_not_taken_as_captions(router, state_store, responder, queue):
    await router.dispatch(command_event("suggest"), responder)
    await router.dispatch(command_event("help"), responder)

    assert responder.texts[-1] == HELP_TEXT
    assert label_of(state_store) == ENTERING_CAPTION
    assert await queue.list_pending(10) == []


@pytest.mark.asyncio
async def test_prompt_delivery_failure_leaves_state_idle(router, state_store):
    await router.dispatch(command_event("suggest"), RecordingResponder(fail=True))

    assert len(state_store) == 0


@pytest.mark.asyncio
async def test_cancel_clears_even_if_acknowledgement_fails(router, state_store, responder):
    await router.dispatch(command_event("suggest"), responder)
    await router.dispatch(command_event("cancel"), RecordingResponder(fail=True))

    assert len(state_store) == 0


def prefixed_text(text: str) -> Event:
    name, args = parse_command(text, ("/", "!"))
    return Event(
        kind=EventKind.COMMAND,
        chat_id=DM_CHAT,
        user_id=USER_ID,
        is_private=True,
        message_id=12,
        text=text,
        command=name,
        args=args,
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["!wow this caption is great", "/shrug when the tests pass"])
async def test_caption_starting_with_a_prefix_is_submitted(router, state_store, responder, queue, text):
    await router.dispatch(command_event("suggest"), responder)
    handler = await router.dispatch(prefixed_text(text), responder)

    assert handler is not None and handler.name == "suggest_enter_caption"
    assert responder.texts[-1] == MESSAGES["suggest_submitted"]
    assert label_of(state_store) == ""
    assert [c.text for c in await queue.list_pending(10)] == [text]


@pytest.mark.asyncio
async def test_bot_commands_are_not_submitted_while_entering_caption(router, state_store, responder, queue):
    await router.dispatch(command_event("suggest"), responder)

    assert await router.dispatch(command_event("suggest"), responder) is None
    assert label_of(state_store) == ENTERING_CAPTION
    assert await queue.list_pending(10) == []
