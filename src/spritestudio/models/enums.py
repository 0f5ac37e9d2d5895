"""Enumerations used throughout Sprite Studio."""

from enum import StrEnum

from spritestudio.errors import InvalidAngle


class RotationMode(StrEnum):
    """Angle resolution a part's art is authored at."""

    DEG45 = "deg45"  # 8 rotations: 0, 45, ..., 315
    DEG22_5 = "deg22_5"  # 16 rotations: 0, 22.5, ..., 337.5

    @property
    def count(self) -> int:
        return 8 if self is RotationMode.DEG45 else 16

    @property
    def step(self) -> float:
        return 360 / self.count

    @property
    def angles(self) -> list[float]:
        return [i * self.step for i in range(self.count)]

    def ordinal(self, angle: float) -> int:
        """Slot index of a canonical *angle*, raising :class:`InvalidAngle` otherwise."""
        index, remainder = divmod(float(angle), self.step)
        if remainder != 0 or not 0 <= index < self.count:
            raise InvalidAngle(angle, self.angles)
        return int(index)

    def angle_at(self, ordinal: int) -> float:
        return (ordinal % self.count) * self.step

    def mirror_ordinal(self, ordinal: int) -> int:
        return (self.count - ordinal) % self.count

    def mirror_angle(self, angle: float) -> float:
        """Angle whose horizontally flipped art stands in for *angle*.

        45 mirrors to 315 and 90 to 270; 0 and 180 map to themselves.
        """
        return self.angle_at(self.mirror_ordinal(self.ordinal(angle)))

    def is_self_mirrored(self, angle: float) -> bool:
        ordinal = self.ordinal(angle)
        return self.mirror_ordinal(ordinal) == ordinal


class SlotKind(StrEnum):
    DIRECT = "direct"
    MIRRORED = "mirrored"
