"""Export request and spritesheet metadata models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LayoutPolicy(BaseModel):
    """How frames are arranged on the atlas grid.

    ``columns=None`` picks ``ceil(sqrt(frame_count))``. When the frame count
    is at or under ``strip_threshold`` the frames go in a single row.
    """

    columns: int | None = Field(default=None, gt=0)
    strip_threshold: int = Field(default=0, ge=0)


class ExportSelection(BaseModel):
    """One animation (optionally a ``start:stop`` slice of its frames) to export."""

    animation: str
    start: int | None = Field(default=None, ge=0)
    stop: int | None = Field(default=None, ge=0)


class ExportRequest(BaseModel):
    """A batch export: selections laid out in the order given."""

    selections: list[ExportSelection]
    layout: LayoutPolicy = Field(default_factory=LayoutPolicy)
    workers: int | None = Field(default=None, gt=0)
    image_format: str = "png"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FrameMeta(_CamelModel):
    """Where one exported frame sits in the atlas."""

    animation: str
    frame_index: int = Field(alias="frameIndex")
    x: int
    y: int
    width: int
    height: int


class AnimationMeta(_CamelModel):
    name: str
    fps: float
    frame_count: int = Field(alias="frameCount")


class SpritesheetMetadata(_CamelModel):
    """The metadata document written next to an atlas image."""

    image: str = ""
    character: str
    width: int
    height: int
    frame_width: int = Field(alias="frameWidth")
    frame_height: int = Field(alias="frameHeight")
    columns: int
    rows: int
    animations: list[AnimationMeta] = Field(default_factory=list)
    frames: list[FrameMeta] = Field(default_factory=list)

    def to_document(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)
