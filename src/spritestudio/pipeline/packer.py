"""Spritesheet packing on a uniform grid with Pillow."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from PIL import Image

from spritestudio.errors import EmptyExportJob
from spritestudio.models.export import FrameMeta, LayoutPolicy

logger = logging.getLogger(__name__)


@dataclass
class RenderedFrame:
    """A flattened frame waiting for its atlas cell."""

    animation: str
    frame_index: int
    image: Image.Image


def grid_for(count: int, policy: LayoutPolicy | None = None) -> tuple[int, int]:
    """``(columns, rows)`` for *count* frames under *policy*."""
    if count <= 0:
        msg = "cannot lay out an empty grid"
        raise EmptyExportJob(msg)
    policy = policy or LayoutPolicy()
    if count <= policy.strip_threshold:
        columns = count
    elif policy.columns is not None:
        columns = min(policy.columns, count)
    else:
        columns = math.ceil(math.sqrt(count))
    rows = math.ceil(count / columns)
    return columns, rows


def pack(
    frames: list[RenderedFrame],
    policy: LayoutPolicy | None = None,
    *,
    cell_size: tuple[int, int] | None = None,
) -> tuple[Image.Image, list[FrameMeta]]:
    """Place *frames* row-major on one atlas.

    Parameters
    ----------
    frames:
        Frames in final order; each animation's frames should be contiguous.
    policy:
        Column count and strip behaviour. Defaults to an auto square-ish grid.
    cell_size:
        ``(width, height)`` of every cell, normally the character's canvas
        size. Defaults to the size of the first frame.

    Returns
    -------
    tuple
        The RGBA atlas and one :class:`FrameMeta` per frame, in input order.
    """
    if not frames:
        raise EmptyExportJob
    columns, rows = grid_for(len(frames), policy)
    cw, ch = cell_size or frames[0].image.size

    atlas = Image.new("RGBA", (columns * cw, rows * ch), (0, 0, 0, 0))
    metas: list[FrameMeta] = []

    for i, frame in enumerate(frames):
        if frame.image.size != (cw, ch):
            msg = (
                f"frame {frame.animation}[{frame.frame_index}] is "
                f"{frame.image.width}x{frame.image.height}, expected {cw}x{ch}"
            )
            raise ValueError(msg)
        x = (i % columns) * cw
        y = (i // columns) * ch
        atlas.paste(frame.image.convert("RGBA"), (x, y))
        metas.append(
            FrameMeta(
                animation=frame.animation,
                frame_index=frame.frame_index,
                x=x,
                y=y,
                width=cw,
                height=ch,
            )
        )

    logger.info(
        "Packed %d frame(s) into %dx%d atlas (%d columns x %d rows)",
        len(frames), atlas.width, atlas.height, columns, rows,
    )
    return atlas, metas
