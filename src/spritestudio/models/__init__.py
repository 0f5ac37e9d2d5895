"""Sprite Studio data models - pure Pydantic, no I/O."""

from spritestudio.models.animation import Animation, Frame, PlacedPart, ReferenceLayer
from spritestudio.models.character import Character, Part, PartState
from spritestudio.models.enums import RotationMode, SlotKind
from spritestudio.models.export import (
    AnimationMeta,
    ExportRequest,
    ExportSelection,
    FrameMeta,
    LayoutPolicy,
    SpritesheetMetadata,
)
from spritestudio.models.project import Project, ProjectLoadError

__all__ = [
    "Animation",
    "AnimationMeta",
    "Character",
    "ExportRequest",
    "ExportSelection",
    "Frame",
    "FrameMeta",
    "LayoutPolicy",
    "Part",
    "PartState",
    "PlacedPart",
    "Project",
    "ProjectLoadError",
    "ReferenceLayer",
    "RotationMode",
    "SlotKind",
    "SpritesheetMetadata",
]
