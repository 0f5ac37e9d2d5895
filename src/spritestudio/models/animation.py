"""Animation, frame and placement models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ReferenceLayer(BaseModel):
    """Tracing aid shown behind or over a frame in the editor; never exported."""

    image_data: str | None = None  # base64 image
    position: tuple[float, float] = (0.0, 0.0)
    scale: float = Field(default=1.0, gt=0)
    rotation: float = 0.0  # degrees
    opacity: float = Field(default=0.5, ge=0.0, le=1.0)
    visible: bool = True


class PlacedPart(BaseModel):
    """One part instance placed on a frame."""

    id: int
    part: int  # handle into Character.parts
    state: str
    angle: float = 0.0
    position: tuple[float, float] = (0.0, 0.0)
    flip: bool = False
    z_override: int | None = None
    visible: bool = True
    layer_name: str = ""


class Frame(BaseModel):
    """A single frame: ordered placements plus frame-level z overrides."""

    placed_parts: list[PlacedPart] = Field(default_factory=list)
    # part handle -> z, applies to every placement of that part in this frame
    z_overrides: dict[int, int] = Field(default_factory=dict)
    reference: ReferenceLayer | None = None

    def placement(self, placement_id: int) -> PlacedPart | None:
        return next((p for p in self.placed_parts if p.id == placement_id), None)

    def remove_placement(self, placement_id: int) -> None:
        self.placed_parts = [p for p in self.placed_parts if p.id != placement_id]


class Animation(BaseModel):
    """An ordered sequence of frames played back at a constant rate."""

    name: str
    fps: float | None = Field(default=None, gt=0)
    frames: list[Frame] = Field(default_factory=list)
    # part handle -> z, applies to every frame of this animation
    z_overrides: dict[int, int] = Field(default_factory=dict)

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    def add_frame(self, frame: Frame | None = None) -> Frame:
        frame = frame or Frame()
        self.frames.append(frame)
        return frame
