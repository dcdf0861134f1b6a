from __future__ import annotations

from typing import Awaitable, Callable, Optional

import discord

from ..constants import APPROVE_BUTTON_ID, CANCEL_BUTTON_ID, REJECT_BUTTON_ID
from ..conversation.replies import Control, Controls

PressCallback = Callable[[discord.Interaction, str], Awaitable[None]]

_STYLES = {
    APPROVE_BUTTON_ID: discord.ButtonStyle.success,
    REJECT_BUTTON_ID: discord.ButtonStyle.danger,
    CANCEL_BUTTON_ID: discord.ButtonStyle.secondary,
}


class ControlButton(discord.ui.Button):
    def __init__(self, control: Control, row: int, on_press: PressCallback) -> None:
        super().__init__(
            label=control.label,
            custom_id=control.button_id,
            style=_STYLES.get(control.button_id, discord.ButtonStyle.primary),
            row=row,
        )
        self._on_press = on_press

    async def callback(self, interaction: discord.Interaction) -> None:
        await self._on_press(interaction, self.custom_id or "")


class ControlsView(discord.ui.View):
    """Button rows whose presses are forwarded as button ids.

    Views never time out, so the same layout can be registered as a persistent
    view and keep routing presses after a restart.
    """

    def __init__(self, controls: Controls, on_press: PressCallback) -> None:
        super().__init__(timeout=None)
        for row, buttons in enumerate(controls):
            for control in buttons:
                self.add_item(ControlButton(control, row, on_press))


def build_view(controls: Controls, on_press: PressCallback) -> Optional[ControlsView]:
    if not controls:
        return None
    return ControlsView(controls, on_press)
