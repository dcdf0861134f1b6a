from __future__ import annotations

from typing import Final

# Discord limits
MAX_MESSAGE_LENGTH: Final[int] = 2000

# Moderation
DEFAULT_REVIEW_PAGE_SIZE: Final[int] = 25

# Random caption drawing
DEFAULT_RANDOM_CAPTION_TRIGGER: Final[str] = "mark"
DEFAULT_RANDOM_CAPTION_CHANCE_PERCENT: Final[int] = 50
DEFAULT_MAX_IMAGE_BYTES: Final[int] = 10 * 1024 * 1024
RENDERED_IMAGE_NAME: Final[str] = "caption.png"

# Button ids used by the approve dialogue
APPROVE_BUTTON_ID: Final[str] = "approve_caption"
REJECT_BUTTON_ID: Final[str] = "reject_caption"
CANCEL_BUTTON_ID: Final[str] = "cancel"

# Command names the bot reacts to; any other prefixed word is ordinary text.
BOT_COMMANDS: Final[tuple[str, ...]] = ("start", "help", "suggest", "approve", "cancel")

HELP_TEXT: Final[str] = (
    "You can control me with these commands (direct messages only):\n"
    "\n"
    "/suggest - suggest a new caption\n"
    "/approve - review suggested captions (administrators only)\n"
    "/cancel - stop /suggest or /approve before it is finished"
)

REVIEW_TEMPLATE: Final[str] = (
    "Captions remaining: {remaining} / {total}\n"
    "\n"
    "text: {text}\n"
    "author_id: {author_id}\n"
    "created_at: {created_at}"
)

# User facing replies. Every code path owns a distinct string.
MESSAGES: Final[dict[str, str]] = {
    "unknown_error": "An unexpected error occurred.",
    "suggest_prompt": "Send the caption you would like to suggest.",
    "suggest_submitted": "The caption has been sent for approval.",
    "suggest_failed": "Could not submit the caption. {detail}",
    "suggest_duplicate": "This caption already exists. Try something else.",
    "suggest_cancelled": "The /suggest command has been cancelled.",
    "review_empty": "There are no captions waiting for approval.",
    "review_finished": "No more captions left to approve.",
    "review_cancelled": "The /approve command has been cancelled.",
}

BUTTON_LABELS: Final[dict[str, str]] = {
    APPROVE_BUTTON_ID: "Approve",
    REJECT_BUTTON_ID: "Reject",
    CANCEL_BUTTON_ID: "Cancel",
}
