from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import Union

from PIL import Image, ImageDraw, ImageFont

from ..errors import RenderError

log = logging.getLogger("captionbot.image_service")

_Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

PADDING = 20
FONT_SCALE = 0.08
LINE_SPACING = 1.3


def _load_font(font_path: str, size: int) -> _Font:
    if not font_path:
        return ImageFont.load_default(size=size)
    try:
        return ImageFont.truetype(font_path, size=size)
    except OSError as e:
        raise RenderError(f"load font {font_path}: {e}") from e


def _wrap(draw: ImageDraw.ImageDraw, text: str, font: _Font, max_width: float) -> list[str]:
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if current and draw.textlength(candidate, font=font) > max_width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


def render_caption(image_bytes: bytes, text: str, font_path: str = "") -> bytes:
    """Draw ``text`` wrapped and centered along the bottom edge; return PNG bytes.

    The text is drawn twice: black, then white a few pixels higher, which reads
    as a drop shadow on both light and dark photos.
    """
    try:
        with Image.open(BytesIO(image_bytes)) as source:
            image = source.convert("RGB")
    except (OSError, Image.DecompressionBombError) as e:
        raise RenderError(f"decode image: {e}") from e

    width, height = image.size
    font = _load_font(font_path, max(1, int(width * FONT_SCALE)))
    draw = ImageDraw.Draw(image)

    lines = _wrap(draw, text, font, width)
    top, bottom = draw.textbbox((0, 0), "Ag", font=font)[1::2]
    line_height = (bottom - top) * LINE_SPACING
    block_top = height - PADDING - line_height * len(lines)

    for fill, lift in (((0, 0, 0), 0.0), ((255, 255, 255), PADDING / 6)):
        y = block_top - lift
        for line in lines:
            x = (width - draw.textlength(line, font=font)) / 2
            draw.text((x, y), line, font=font, fill=fill)
            y += line_height

    out = BytesIO()
    image.save(out, format="PNG")
    return out.getvalue()


class ImageService:
    def __init__(self, font_path: str = "") -> None:
        self._font_path = font_path

    async def render(self, image_bytes: bytes, text: str) -> bytes:
        # Pillow work is CPU bound; keep it off the event loop.
        return await asyncio.to_thread(render_caption, image_bytes, text, self._font_path)
