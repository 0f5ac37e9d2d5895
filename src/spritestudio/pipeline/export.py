"""Batch spritesheet export: parallel frame rendering, packing and writing."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from spritestudio.errors import (
    AtlasWriteError,
    DanglingPartReference,
    EmptyExportJob,
    ExportCancelled,
    ExportRequestError,
    InvalidAngle,
    UnresolvableAngle,
)
from spritestudio.models.export import (
    AnimationMeta,
    ExportRequest,
    ExportSelection,
    LayoutPolicy,
    SpritesheetMetadata,
)
from spritestudio.pipeline.compositor import render_frame
from spritestudio.pipeline.packer import RenderedFrame, grid_for, pack
from spritestudio.pipeline.rotation import RotationResolver
from spritestudio.pipeline.sequencer import DEFAULT_FPS, effective_fps
from spritestudio.validation import validate_metadata

if TYPE_CHECKING:
    import threading

    from PIL import Image

    from spritestudio.models import Animation, Character

logger = logging.getLogger(__name__)

_PIL_FORMATS = {"jpg": "JPEG"}


@dataclass
class FrameFailure:
    """A frame left out of the atlas and why."""

    animation: str
    frame_index: int
    reason: str
    error: str

    def __str__(self) -> str:
        return f"{self.animation}[{self.frame_index}]: {self.error}: {self.reason}"


@dataclass
class ExportResult:
    """Outcome of :func:`run_export`; ``failures`` lists every skipped frame."""

    atlas: Image.Image
    metadata: SpritesheetMetadata
    failures: list[FrameFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _selected_frames(character: Character, selection: ExportSelection) -> tuple[Animation, range]:
    anim = character.animation(selection.animation)
    if anim is None:
        msg = f"character '{character.name}' has no animation '{selection.animation}'"
        raise ExportRequestError(msg)
    count = anim.frame_count
    start = 0 if selection.start is None else selection.start
    stop = count if selection.stop is None else selection.stop
    if start > stop or stop > count:
        msg = f"frame range {start}:{stop} is outside animation '{anim.name}' ({count} frames)"
        raise ExportRequestError(msg)
    return anim, range(start, stop)


def _render_one(
    character: Character,
    animation: Animation,
    index: int,
    resolver: RotationResolver,
    cancel: threading.Event | None,
) -> RenderedFrame | FrameFailure:
    if cancel is not None and cancel.is_set():
        raise ExportCancelled
    try:
        image = render_frame(character, animation, index, resolver=resolver)
    except (UnresolvableAngle, InvalidAngle, DanglingPartReference) as exc:
        return FrameFailure(animation.name, index, str(exc), type(exc).__name__)
    return RenderedFrame(animation.name, index, image)


def _cancel_pending(futures: list[Future]) -> None:
    for f in futures:
        f.cancel()


def run_export(
    character: Character,
    request: ExportRequest,
    *,
    cancel: threading.Event | None = None,
    default_fps: float = DEFAULT_FPS,
) -> ExportResult:
    """Render and pack every selected frame into one atlas.

    Frames are rendered on a thread pool and packed in selection order once
    all of them are back. A frame with missing art or a non-canonical
    placement angle is skipped; a dangling part reference skips its whole
    animation. Skips are reported in :attr:`ExportResult.failures`.

    Raises
    ------
    ExportRequestError
        If a selection names an unknown animation or an invalid range.
    EmptyExportJob
        If nothing is selected, or nothing could be rendered.
    ExportCancelled
        If *cancel* is set before the last frame finishes.
    """
    work: list[tuple[Animation, int]] = []
    for selection in request.selections:
        anim, frames = _selected_frames(character, selection)
        work.extend((anim, i) for i in frames)
    if not work:
        raise EmptyExportJob

    logger.info(
        "Exporting %d frame(s) of '%s' from %d selection(s)",
        len(work), character.name, len(request.selections),
    )
    resolver = RotationResolver()
    with ThreadPoolExecutor(
        max_workers=request.workers, thread_name_prefix="spritestudio-render",
    ) as pool:
        futures = [
            pool.submit(_render_one, character, anim, i, resolver, cancel)
            for anim, i in work
        ]
        try:
            results = [f.result() for f in futures]
        except ExportCancelled:
            _cancel_pending(futures)
            logger.info("Export of '%s' cancelled", character.name)
            raise
        except Exception:
            _cancel_pending(futures)
            raise
    if cancel is not None and cancel.is_set():
        raise ExportCancelled

    failures = [r for r in results if isinstance(r, FrameFailure)]
    broken = {f.animation for f in failures if f.error == DanglingPartReference.__name__}
    rendered: list[RenderedFrame] = []
    for r in results:
        if not isinstance(r, RenderedFrame):
            continue
        if r.animation in broken:
            failures.append(
                FrameFailure(
                    r.animation,
                    r.frame_index,
                    "animation skipped because of a dangling part reference",
                    DanglingPartReference.__name__,
                )
            )
            continue
        rendered.append(r)

    for failure in failures:
        logger.warning("Skipped frame %s", failure)
    if not rendered:
        msg = f"no frames of '{character.name}' could be rendered"
        raise EmptyExportJob(msg, failures)

    atlas, metas = pack(rendered, request.layout, cell_size=character.canvas_size)
    columns, rows = grid_for(len(rendered), request.layout)

    anim_meta: list[AnimationMeta] = []
    for anim, _ in work:
        if any(a.name == anim.name for a in anim_meta) or anim.name in broken:
            continue
        anim_meta.append(
            AnimationMeta(
                name=anim.name,
                fps=effective_fps(anim, default_fps),
                frame_count=sum(1 for r in rendered if r.animation == anim.name),
            )
        )

    metadata = SpritesheetMetadata(
        character=character.name,
        width=atlas.width,
        height=atlas.height,
        frame_width=character.canvas_size[0],
        frame_height=character.canvas_size[1],
        columns=columns,
        rows=rows,
        animations=anim_meta,
        frames=metas,
    )
    return ExportResult(atlas=atlas, metadata=metadata, failures=failures)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def _temp_sibling(target: Path) -> Path:
    fd, name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    os.close(fd)
    return Path(name)


def write_export(
    result: ExportResult,
    output: Path,
    *,
    image_format: str = "png",
) -> tuple[Path, Path]:
    """Write the atlas and its ``.json`` metadata next to each other.

    Both files are written to temporaries in the target directory and
    renamed into place only once both encoded successfully.

    Returns
    -------
    tuple
        ``(atlas_path, metadata_path)``.
    """
    ext = image_format.lower()
    atlas_path = output if output.suffix.lower() == f".{ext}" else output.with_name(f"{output.name}.{ext}")
    meta_path = atlas_path.with_suffix(".json")

    document = result.metadata.model_copy(update={"image": atlas_path.name}).to_document()
    validate_metadata(document)

    pil_format = _PIL_FORMATS.get(ext, ext.upper())
    # JPEG has no alpha channel
    atlas = result.atlas.convert("RGB") if pil_format == "JPEG" else result.atlas

    atlas_path.parent.mkdir(parents=True, exist_ok=True)
    temps: list[Path] = []
    try:
        atlas_tmp = _temp_sibling(atlas_path)
        temps.append(atlas_tmp)
        atlas.save(atlas_tmp, pil_format)
        meta_tmp = _temp_sibling(meta_path)
        temps.append(meta_tmp)
        meta_tmp.write_text(json.dumps(document, indent=2))
        atlas_tmp.replace(atlas_path)
        temps[0] = atlas_path
        meta_tmp.replace(meta_path)
    except (OSError, ValueError, KeyError) as exc:
        # an atlas without its metadata is removed too
        for tmp in temps:
            tmp.unlink(missing_ok=True)
        msg = f"failed to write spritesheet {atlas_path}: {exc}"
        raise AtlasWriteError(msg) from exc

    logger.info("Wrote %s and %s", atlas_path, meta_path)
    return atlas_path, meta_path


def export_spritesheet(
    character: Character,
    request: ExportRequest,
    output: Path,
    *,
    cancel: threading.Event | None = None,
    default_fps: float = DEFAULT_FPS,
) -> tuple[ExportResult, Path, Path]:
    """Run an export job and write its atlas and metadata."""
    result = run_export(character, request, cancel=cancel, default_fps=default_fps)
    atlas_path, meta_path = write_export(result, output, image_format=request.image_format)
    return result, atlas_path, meta_path


def safe_filename(name: str) -> str:
    """Replace anything but letters, digits, ``_`` and ``-`` with ``_``."""
    return re.sub(r"[^\w-]", "_", name)


def export_all_animations(
    character: Character,
    output_dir: Path,
    *,
    layout: LayoutPolicy | None = None,
    workers: int | None = None,
    image_format: str = "png",
    cancel: threading.Event | None = None,
    default_fps: float = DEFAULT_FPS,
) -> list[tuple[Path, ExportResult]]:
    """Write one spritesheet per animation with frames.

    Files are named ``<character>_<animation>.<ext>``. Animations whose
    frames all fail are logged and skipped.
    """
    written: list[tuple[Path, ExportResult]] = []
    for anim in character.animations:
        if anim.frame_count == 0:
            continue
        request = ExportRequest(
            selections=[ExportSelection(animation=anim.name)],
            layout=layout or LayoutPolicy(),
            workers=workers,
            image_format=image_format,
        )
        output = output_dir / f"{safe_filename(character.name)}_{safe_filename(anim.name)}.{image_format}"
        try:
            result, atlas_path, _ = export_spritesheet(
                character, request, output, cancel=cancel, default_fps=default_fps,
            )
        except EmptyExportJob as exc:
            logger.warning("Skipped animation '%s': %s", anim.name, exc)
            continue
        written.append((atlas_path, result))
    return written
