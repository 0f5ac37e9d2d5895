"""Frame compositing: placements to ordered draw operations to a flat image."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from PIL import Image, ImageOps

from spritestudio.errors import (
    DanglingPartReference,
    FrameOutOfRange,
    ImageDecodeError,
    UnresolvableAngle,
)
from spritestudio.pipeline.imaging import decode_image, is_pixel_opaque
from spritestudio.pipeline.rotation import RotationResolver, resolve

if TYPE_CHECKING:
    from spritestudio.models import Animation, Character, Frame, PlacedPart

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawOp:
    """One ready-to-render placement."""

    placement_id: int
    part_name: str
    state: str
    angle: float
    image: str  # base64 PNG
    mirrored: bool
    position: tuple[int, int]
    z: int
    order: int  # index of the placement within its frame

    @property
    def z_key(self) -> tuple[int, int]:
        return (self.z, self.order)


def resolve_z(
    character: Character,
    animation: Animation,
    frame: Frame,
    placed: PlacedPart,
) -> int:
    """Effective z of *placed*: placement, frame, animation, then part default."""
    if placed.z_override is not None:
        return placed.z_override
    if placed.part in frame.z_overrides:
        return frame.z_overrides[placed.part]
    if placed.part in animation.z_overrides:
        return animation.z_overrides[placed.part]
    return character.part(placed.part).default_z


def _frame(animation: Animation, frame_index: int) -> Frame:
    if not 0 <= frame_index < animation.frame_count:
        msg = (
            f"animation '{animation.name}' has {animation.frame_count} frames, "
            f"no frame {frame_index}"
        )
        raise FrameOutOfRange(msg)
    return animation.frames[frame_index]


def composite(
    character: Character,
    animation: Animation,
    frame_index: int,
    *,
    resolver: RotationResolver | None = None,
) -> list[DrawOp]:
    """Build the draw list for one frame, ordered back-to-front.

    Hidden placements are skipped. Ties in z keep the placement order.

    Raises
    ------
    FrameOutOfRange
        If *frame_index* is not a frame of *animation*.
    DanglingPartReference
        If a placement names a missing part or state.
    UnresolvableAngle
        If a placement's angle has no usable art.
    """
    frame = _frame(animation, frame_index)
    ops: list[DrawOp] = []

    for order, placed in enumerate(frame.placed_parts):
        if not placed.visible:
            continue
        part = character.part(placed.part)
        state = part.state(placed.state)
        if state is None:
            msg = f"placement {placed.id} uses unknown state '{placed.state}' of part '{part.name}'"
            raise DanglingPartReference(msg)

        if resolver is not None:
            slot = resolver.resolve(state, part.rotation_mode, placed.angle)
        else:
            slot = resolve(state, part.rotation_mode, placed.angle)

        x, y = placed.position
        ops.append(
            DrawOp(
                placement_id=placed.id,
                part_name=part.name,
                state=state.name,
                angle=slot.angle,
                image=slot.image,
                mirrored=slot.mirrored ^ placed.flip,
                position=(round(x), round(y)),
                z=resolve_z(character, animation, frame, placed),
                order=order,
            )
        )

    ops.sort(key=lambda op: op.z_key)
    return ops


def _op_image(op: DrawOp) -> Image.Image:
    img = decode_image(op.image)
    return ImageOps.mirror(img) if op.mirrored else img


def _paste_clipped(canvas: Image.Image, img: Image.Image, x: int, y: int) -> None:
    """Alpha-composite *img* at ``(x, y)``, discarding whatever falls off-canvas."""
    left = max(0, -x)
    top = max(0, -y)
    right = min(img.width, canvas.width - x)
    bottom = min(img.height, canvas.height - y)
    if left >= right or top >= bottom:
        return
    if (left, top, right, bottom) != (0, 0, img.width, img.height):
        img = img.crop((left, top, right, bottom))
    canvas.alpha_composite(img, dest=(x + left, y + top))


def draw(ops: list[DrawOp], canvas_size: tuple[int, int]) -> Image.Image:
    """Flatten *ops* onto a transparent canvas with straight alpha-over."""
    canvas = Image.new("RGBA", canvas_size, (0, 0, 0, 0))
    for op in ops:
        try:
            img = _op_image(op)
        except ImageDecodeError as exc:
            raise UnresolvableAngle(op.state, op.angle, str(exc)) from exc
        _paste_clipped(canvas, img, *op.position)
    return canvas


def render_frame(
    character: Character,
    animation: Animation,
    frame_index: int,
    *,
    resolver: RotationResolver | None = None,
) -> Image.Image:
    """Composite and flatten one frame at the character's canvas size."""
    ops = composite(character, animation, frame_index, resolver=resolver)
    logger.debug(
        "Rendering %s[%d]: %d draw op(s)", animation.name, frame_index, len(ops),
    )
    return draw(ops, character.canvas_size)


def hit_test(ops: list[DrawOp], x: int, y: int) -> DrawOp | None:
    """Topmost op with an opaque pixel at canvas point ``(x, y)``.

    Falls back to the topmost op whose bounds contain the point when every
    candidate is transparent there.
    """
    fallback: DrawOp | None = None
    for op in reversed(ops):
        try:
            img = _op_image(op)
        except ImageDecodeError:
            continue
        px, py = x - op.position[0], y - op.position[1]
        if not (0 <= px < img.width and 0 <= py < img.height):
            continue
        if fallback is None:
            fallback = op
        if is_pixel_opaque(img, px, py):
            return op
    return fallback
