from __future__ import annotations

import random
from typing import Optional

import pytest

from captionbot.config import Settings
from captionbot.conversation.events import Event, EventKind, ReplyTarget
from captionbot.conversation.state import StateStore
from captionbot.database import initialize_database
from captionbot.services.captions_store import CaptionsStore
from captionbot.services.moderation_queue import ModerationQueue
from captionbot.services.stats import RuntimeStats
from captionbot.testing.fakes import RecordingResponder
from captionbot.workflows import build_router

ADMIN_ID = 1001
OTHER_ADMIN_ID = 1002
USER_ID = 2002
DM_CHAT = 3003
ADMIN_DM_CHAT = 3004
OTHER_ADMIN_DM_CHAT = 3005
GROUP_CHAT = 4004


class FakeFetcher:
    def __init__(self, data: bytes = b"raw-photo") -> None:
        self.data = data
        self.urls: list[str] = []

    async def fetch(self, url: str) -> bytes:
        self.urls.append(url)
        return self.data


class FakeImages:
    def __init__(self) -> None:
        self.calls: list[tuple[bytes, str]] = []

    async def render(self, image_bytes: bytes, text: str) -> bytes:
        self.calls.append((image_bytes, text))
        return b"png:" + text.encode()


def command_event(name: str, user_id: int = USER_ID, chat_id: int = DM_CHAT, private: bool = True) -> Event:
    return Event(
        kind=EventKind.COMMAND,
        chat_id=chat_id,
        user_id=user_id,
        is_private=private,
        message_id=10,
        text=f"/{name}",
        command=name,
    )


def text_event(
    text: str,
    user_id: int = USER_ID,
    chat_id: int = DM_CHAT,
    private: bool = True,
    photos: tuple[str, ...] = (),
    reply_to: Optional[ReplyTarget] = None,
    message_id: int = 11,
) -> Event:
    return Event(
        kind=EventKind.MESSAGE,
        chat_id=chat_id,
        user_id=user_id,
        is_private=private,
        message_id=message_id,
        text=text,
        photos=photos,
        reply_to=reply_to,
    )


def button_event(button_id: str, message_id: int, user_id: int = ADMIN_ID, chat_id: int = ADMIN_DM_CHAT) -> Event:
    return Event(
        kind=EventKind.BUTTON,
        chat_id=chat_id,
        user_id=user_id,
        is_private=True,
        message_id=message_id,
        button_id=button_id,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        token="test-token",
        admin_ids=(ADMIN_ID, OTHER_ADMIN_ID),
        review_page_size=25,
        random_caption_trigger="mark",
        random_caption_chance_percent=0,
    )


@pytest.fixture
async def captions_store(tmp_path) -> CaptionsStore:
    path = str(tmp_path / "captions.sqlite3")
    store = CaptionsStore(path)
    await initialize_database(path, [store])
    return store


@pytest.fixture
def stats() -> RuntimeStats:
    return RuntimeStats()


@pytest.fixture
def queue(captions_store, stats) -> ModerationQueue:
    return ModerationQueue(captions_store, stats=stats)


@pytest.fixture
def state_store() -> StateStore:
    return StateStore()


@pytest.fixture
def responder() -> RecordingResponder:
    return RecordingResponder()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def images() -> FakeImages:
    return FakeImages()


@pytest.fixture
def router(settings, queue, images, fetcher, state_store, stats):
    return build_router(
        settings,
        queue,
        images,
        fetcher,
        store=state_store,
        stats=stats,
        rng=random.Random(0),
    )
