"""Rotation resolution: complete a part-state's rotation wheel by mirroring.

Art is authored at a sparse set of canonical angles. Any missing angle
whose mirror partner, ``(360 - a) mod 360``, is authored is served by that
image flipped horizontally. 0 and 180 degrees are their own partners and
must always be drawn by hand. Nothing is ever interpolated or resampled.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from spritestudio.errors import UnresolvableAngle
from spritestudio.models.character import PartState
from spritestudio.models.enums import RotationMode, SlotKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AngleSlot:
    """The concrete art that represents a requested angle."""

    angle: float
    source_angle: float
    image: str
    mirrored: bool

    @property
    def kind(self) -> SlotKind:
        return SlotKind.MIRRORED if self.mirrored else SlotKind.DIRECT


def _resolve_ordinal(state: PartState, mode: RotationMode, ordinal: int) -> AngleSlot | None:
    angle = mode.angle_at(ordinal)
    direct = state.image_at(ordinal)
    if direct is not None:
        return AngleSlot(angle=angle, source_angle=angle, image=direct, mirrored=False)
    partner = mode.mirror_ordinal(ordinal)
    if partner != ordinal:
        mirrored = state.image_at(partner)
        if mirrored is not None:
            return AngleSlot(
                angle=angle,
                source_angle=mode.angle_at(partner),
                image=mirrored,
                mirrored=True,
            )
    return None


def resolve(state: PartState, mode: RotationMode, angle: float) -> AngleSlot:
    """Resolve *angle* of *state* to an image plus mirror flag.

    Raises
    ------
    InvalidAngle
        If *angle* is not canonical for *mode*.
    UnresolvableAngle
        If neither the angle nor its mirror partner has art.
    """
    ordinal = mode.ordinal(angle)
    slot = _resolve_ordinal(state, mode, ordinal)
    if slot is None:
        detail = "front/back angles must be authored directly" if mode.is_self_mirrored(angle) else ""
        raise UnresolvableAngle(state.name, angle, detail)
    return slot


def resolve_wheel(state: PartState, mode: RotationMode) -> dict[float, AngleSlot | None]:
    """Resolution for every canonical angle, ``None`` where art is missing."""
    return {mode.angle_at(i): _resolve_ordinal(state, mode, i) for i in range(mode.count)}


def missing_angles(state: PartState, mode: RotationMode) -> list[float]:
    """Angles that cannot be shown even with mirroring."""
    return [angle for angle, slot in resolve_wheel(state, mode).items() if slot is None]


class RotationResolver:
    """Read-through cache over :func:`resolve`.

    Entries are keyed per (state, mode, angle) and are discarded when the
    state's revision changes. Safe to share between render threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cache: dict[tuple[int, RotationMode, int], tuple[PartState, int, AngleSlot]] = {}
        self.hits = 0
        self.misses = 0

    def resolve(self, state: PartState, mode: RotationMode, angle: float) -> AngleSlot:
        ordinal = mode.ordinal(angle)
        key = (id(state), mode, ordinal)
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None and entry[0] is state and entry[1] == state.revision:
                self.hits += 1
                return entry[2]
        slot = resolve(state, mode, angle)
        with self._lock:
            self.misses += 1
            self._cache[key] = (state, state.revision, slot)
        return slot

    def invalidate(self, state: PartState) -> None:
        with self._lock:
            for key in [k for k, v in self._cache.items() if v[0] is state]:
                del self._cache[key]

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            logger.debug("Rotation cache cleared")

    def __len__(self) -> int:
        return len(self._cache)
