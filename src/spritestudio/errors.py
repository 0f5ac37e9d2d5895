"""Typed failures raised by the compositing and export engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spritestudio.pipeline.export import FrameFailure


class SpriteStudioError(Exception):
    """Base class for every engine error surfaced to callers."""


class InvalidAngle(SpriteStudioError, ValueError):
    """An angle is not one of the canonical angles of a rotation mode."""

    def __init__(self, angle: float, allowed: list[float]) -> None:
        self.angle = angle
        self.allowed = allowed
        shown = ", ".join(f"{a:g}" for a in allowed)
        super().__init__(f"{angle:g} is not a canonical angle (expected one of {shown})")


class UnresolvableAngle(SpriteStudioError):
    """No authored or mirrorable art exists for a requested angle."""

    def __init__(self, state: str, angle: float, detail: str = "") -> None:
        self.state = state
        self.angle = angle
        msg = f"missing art for state '{state}' at {angle:g} degrees"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class DanglingPartReference(SpriteStudioError):
    """A placement points at a part handle or state that no longer exists."""


class PartInUseError(SpriteStudioError):
    """Deleting a part was rejected because placements still reference it."""

    def __init__(self, part_name: str, references: list[tuple[str, int]]) -> None:
        self.part_name = part_name
        self.references = references
        where = ", ".join(f"{anim}[{idx}]" for anim, idx in references[:5])
        if len(references) > 5:
            where += ", ..."
        super().__init__(
            f"part '{part_name}' is used by {len(references)} placement(s): {where}"
        )


class DuplicateStateError(SpriteStudioError, ValueError):
    """A part already has a state with the requested name."""


class FrameOutOfRange(SpriteStudioError, IndexError):
    """A frame index does not exist in an animation."""


class ImageDecodeError(SpriteStudioError):
    """Authored art could not be decoded into a raster image."""


class EmptyExportJob(SpriteStudioError):
    """An export produced no frames to pack."""

    def __init__(
        self,
        msg: str = "export job selects no frames",
        failures: list[FrameFailure] | None = None,
    ) -> None:
        self.failures = list(failures or [])
        super().__init__(msg)


class ExportRequestError(SpriteStudioError, ValueError):
    """An export request names unknown animations or invalid frame ranges."""


class ExportCancelled(SpriteStudioError):
    """An export job was cancelled between frames."""


class AtlasWriteError(SpriteStudioError):
    """The atlas image or its metadata could not be written."""
