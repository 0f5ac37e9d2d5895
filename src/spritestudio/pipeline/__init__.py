"""Sprite Studio engine - rotation, compositing, sequencing and packing."""

from spritestudio.pipeline.compositor import DrawOp, composite, hit_test, render_frame, resolve_z
from spritestudio.pipeline.export import (
    ExportResult,
    FrameFailure,
    export_all_animations,
    export_spritesheet,
    run_export,
    write_export,
)
from spritestudio.pipeline.packer import RenderedFrame, grid_for, pack
from spritestudio.pipeline.rotation import (
    AngleSlot,
    RotationResolver,
    missing_angles,
    resolve,
    resolve_wheel,
)
from spritestudio.pipeline.sequencer import frame_at_step, frame_at_time

__all__ = [
    "AngleSlot",
    "DrawOp",
    "ExportResult",
    "FrameFailure",
    "RenderedFrame",
    "RotationResolver",
    "composite",
    "export_all_animations",
    "export_spritesheet",
    "frame_at_step",
    "frame_at_time",
    "grid_for",
    "hit_test",
    "missing_angles",
    "pack",
    "render_frame",
    "resolve",
    "resolve_wheel",
    "resolve_z",
    "run_export",
    "write_export",
]
