"""Project model - a set of characters with save/load."""

from __future__ import annotations

import json
from pathlib import Path
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, PrivateAttr, model_validator
from pydantic import ValidationError as PydanticValidationError

from spritestudio.errors import FrameOutOfRange
from spritestudio.models.animation import PlacedPart
from spritestudio.models.character import Character


class ProjectLoadError(ValueError):
    """Raised when a project file cannot be loaded."""


class Project(BaseModel):
    """A complete Sprite Studio project."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    version: str = "2.0"
    characters: list[Character] = Field(default_factory=list)
    project_dir: Path | None = None

    _next_placement_id: int = PrivateAttr(default=1)

    @model_validator(mode="after")
    def _seed_placement_ids(self) -> Project:
        ids = [
            placed.id
            for char in self.characters
            for anim in char.animations
            for frame in anim.frames
            for placed in frame.placed_parts
        ]
        self._next_placement_id = max(ids, default=0) + 1
        return self

    def character(self, name: str) -> Character | None:
        return next((c for c in self.characters if c.name == name), None)

    def add_character(self, character: Character) -> Character:
        if self.character(character.name) is not None:
            msg = f"project already has a character named '{character.name}'"
            raise ValueError(msg)
        self.characters.append(character)
        return character

    def next_placement_id(self) -> int:
        placement_id = self._next_placement_id
        self._next_placement_id += 1
        return placement_id

    def place(
        self,
        character: Character,
        animation: str,
        frame_index: int,
        part: int,
        state: str,
        *,
        angle: float = 0.0,
        position: tuple[float, float] = (0.0, 0.0),
    ) -> PlacedPart:
        """Append a new placement of *part* to a frame.

        The layer name defaults to the part name, numbered ("head 2") when
        the frame already has a layer with that name.
        """
        anim = character.animation(animation)
        if anim is None:
            msg = f"character '{character.name}' has no animation '{animation}'"
            raise KeyError(msg)
        if not 0 <= frame_index < anim.frame_count:
            msg = f"animation '{animation}' has no frame {frame_index}"
            raise FrameOutOfRange(msg)
        part_obj = character.part(part)
        part_obj.rotation_mode.ordinal(angle)
        frame = anim.frames[frame_index]

        existing = {p.layer_name for p in frame.placed_parts}
        layer_name = part_obj.name
        n = 2
        while layer_name in existing:
            layer_name = f"{part_obj.name} {n}"
            n += 1

        placed = PlacedPart(
            id=self.next_placement_id(),
            part=part,
            state=state,
            angle=angle,
            position=position,
            layer_name=layer_name,
        )
        frame.placed_parts.append(placed)
        return placed

    def save(self, path: Path | None = None) -> Path:
        """Save project to JSON file."""
        save_path = path or self.project_dir
        if save_path is None:
            msg = "No save path specified and no project_dir set"
            raise ValueError(msg)
        save_path = save_path if save_path.suffix == ".json" else save_path / "project.json"
        save_path.parent.mkdir(parents=True, exist_ok=True)
        save_path.write_text(self.model_dump_json(indent=2))
        return save_path

    @classmethod
    def load(cls, path: Path) -> Project:
        """Load project from JSON file."""
        if path.is_dir():
            path = path / "project.json"
        try:
            text = path.read_text()
        except FileNotFoundError:
            msg = f"project file not found: {path}"
            raise ProjectLoadError(msg) from None
        except PermissionError:
            msg = f"permission denied reading project file: {path}"
            raise ProjectLoadError(msg) from None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"project file contains invalid JSON: {exc}"
            raise ProjectLoadError(msg) from None
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            msg = f"project file has invalid structure: {exc}"
            raise ProjectLoadError(msg) from None
