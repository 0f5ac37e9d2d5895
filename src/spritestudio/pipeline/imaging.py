"""Decoding and encoding of embedded part art with Pillow."""

from __future__ import annotations

import base64
import binascii
import io
import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from spritestudio.errors import ImageDecodeError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

MAX_ART_SIZE = 2048


@lru_cache(maxsize=256)
def decode_image(data: str) -> Image.Image:
    """Decode base64 PNG data to a loaded RGBA image.

    Results are cached and shared, so callers must not modify them in place.

    Raises
    ------
    ImageDecodeError
        If *data* is not valid base64 or not a readable image.
    """
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = f"base64 decode error: {exc}"
        raise ImageDecodeError(msg) from exc
    try:
        with Image.open(io.BytesIO(raw)) as img:
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError) as exc:
        msg = f"image load error: {exc}"
        raise ImageDecodeError(msg) from exc


def encode_image(img: Image.Image, *, format: str = "PNG") -> str:
    """Encode *img* as base64 (PNG by default)."""
    buf = io.BytesIO()
    img.save(buf, format.upper())
    return base64.b64encode(buf.getvalue()).decode("ascii")


def import_image(path: Path) -> str:
    """Read an art file and return it re-encoded as base64 PNG.

    Art is never resampled; files larger than ``MAX_ART_SIZE`` on either
    side are rejected.
    """
    try:
        with Image.open(path) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError) as exc:
        msg = f"cannot import {path}: {exc}"
        raise ImageDecodeError(msg) from exc

    width, height = rgba.size
    if width > MAX_ART_SIZE or height > MAX_ART_SIZE:
        msg = f"{path} is {width}x{height}; art may be at most {MAX_ART_SIZE}px per side"
        raise ImageDecodeError(msg)

    logger.debug("Imported %s (%dx%d)", path, width, height)
    return encode_image(rgba)


def is_pixel_opaque(img: Image.Image, x: int, y: int) -> bool:
    """True if the pixel at ``(x, y)`` exists and has non-zero alpha."""
    if not (0 <= x < img.width and 0 <= y < img.height):
        return False
    return img.getpixel((x, y))[3] > 0
