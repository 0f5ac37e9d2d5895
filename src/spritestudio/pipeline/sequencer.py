"""Looping playback: map elapsed time or a step counter to a frame index.

Every function here only reads the animation, so preview and export may
call them concurrently.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spritestudio.models import Animation

DEFAULT_FPS = 12.0

# Absorbs float error such as 0.29 * 100 == 28.999999999999996.
_EPSILON = 1e-9


def effective_fps(animation: Animation, default_fps: float = DEFAULT_FPS) -> float:
    return animation.fps if animation.fps is not None else default_fps


def frame_at_time(
    animation: Animation,
    elapsed: float,
    *,
    default_fps: float = DEFAULT_FPS,
) -> int | None:
    """Frame shown *elapsed* seconds into looping playback.

    Returns ``None`` for an animation with no frames.
    """
    if elapsed < 0:
        msg = f"elapsed time must be non-negative, got {elapsed}"
        raise ValueError(msg)
    count = animation.frame_count
    if count == 0:
        return None
    step = math.floor(elapsed * effective_fps(animation, default_fps) + _EPSILON)
    return step % count


def frame_at_step(animation: Animation, counter: int) -> int | None:
    """Frame shown after *counter* discrete steps. ``None`` if there are no frames."""
    if counter < 0:
        msg = f"frame counter must be non-negative, got {counter}"
        raise ValueError(msg)
    count = animation.frame_count
    if count == 0:
        return None
    return counter % count


def frame_duration(animation: Animation, default_fps: float = DEFAULT_FPS) -> float:
    """Seconds each frame stays on screen."""
    return 1.0 / effective_fps(animation, default_fps)


def loop_duration(animation: Animation, default_fps: float = DEFAULT_FPS) -> float:
    return animation.frame_count * frame_duration(animation, default_fps)
