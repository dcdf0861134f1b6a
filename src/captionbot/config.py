from __future__ import annotations

import os
from dataclasses import dataclass

from .constants import (
    DEFAULT_MAX_IMAGE_BYTES,
    DEFAULT_RANDOM_CAPTION_CHANCE_PERCENT,
    DEFAULT_RANDOM_CAPTION_TRIGGER,
    DEFAULT_REVIEW_PAGE_SIZE,
)


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "y", "on"}


def _get_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


def _get_id_list(name: str) -> tuple[int, ...]:
    raw = os.getenv(name, "").strip()
    if not raw:
        raise RuntimeError(f"{name} is required")
    ids: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError as e:
            raise RuntimeError(f"{name} contains a non-numeric id: {part!r}") from e
    if not ids:
        raise RuntimeError(f"{name} is required")
    return tuple(ids)


def _get_prefixes(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    prefixes = tuple(p.strip() for p in raw.split(",") if p.strip())
    return prefixes or default


@dataclass(frozen=True)
class Settings:
    token: str
    # Users allowed to review pending captions.
    admin_ids: tuple[int, ...]
    # Receives operator failure reports by DM; 0 disables the DM and keeps log-only reporting.
    owner_id: int = 0
    sqlite_path: str = "captions.sqlite3"
    log_level: str = "INFO"
    command_prefixes: tuple[str, ...] = ("/", "!")
    review_page_size: int = DEFAULT_REVIEW_PAGE_SIZE
    random_caption_trigger: str = DEFAULT_RANDOM_CAPTION_TRIGGER
    random_caption_chance_percent: int = DEFAULT_RANDOM_CAPTION_CHANCE_PERCENT
    caption_font_path: str = ""
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    message_content_intent: bool = True


def load_settings() -> Settings:
    token = os.getenv("DISCORD_TOKEN", "").strip()
    if not token:
        raise RuntimeError("DISCORD_TOKEN is required")

    log_level = _get_str("LOG_LEVEL", "INFO")
    if _get_bool("BOT_DEBUG", False):
        log_level = "DEBUG"

    return Settings(
        token=token,
        admin_ids=_get_id_list("ADMIN_IDS"),
        owner_id=_get_int("OWNER_ID", 0),
        sqlite_path=_get_str("SQLITE_PATH", "captions.sqlite3"),
        log_level=log_level,
        command_prefixes=_get_prefixes("COMMAND_PREFIXES", ("/", "!")),
        review_page_size=max(1, _get_int("REVIEW_PAGE_SIZE", DEFAULT_REVIEW_PAGE_SIZE)),
        random_caption_trigger=_get_str("RANDOM_CAPTION_TRIGGER", DEFAULT_RANDOM_CAPTION_TRIGGER).lower(),
        random_caption_chance_percent=min(
            100, max(0, _get_int("RANDOM_CAPTION_CHANCE_PERCENT", DEFAULT_RANDOM_CAPTION_CHANCE_PERCENT))
        ),
        caption_font_path=os.getenv("CAPTION_FONT_PATH", "").strip(),
        max_image_bytes=_get_int("MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES),
        message_content_intent=_get_bool("MESSAGE_CONTENT_INTENT", True),
    )
