"""CLI entry point using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

if TYPE_CHECKING:
    from spritestudio.models import Character, ExportSelection, Project

app = typer.Typer(
    name="spritestudio",
    help="Pixel-art part compositing and spritesheet export.",
    no_args_is_help=True,
)


def _load_project(path: Path) -> Project:
    from spritestudio.models.project import Project, ProjectLoadError

    try:
        return Project.load(path)
    except ProjectLoadError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _pick_character(project: Project, name: str | None) -> Character:
    if name is None:
        if len(project.characters) == 1:
            return project.characters[0]
        names = ", ".join(c.name for c in project.characters) or "none"
        typer.echo(f"Error: choose a character with --character ({names})", err=True)
        raise typer.Exit(1)
    character = project.character(name)
    if character is None:
        typer.echo(f"Error: no character named '{name}'", err=True)
        raise typer.Exit(1)
    return character


def _parse_selection(value: str) -> ExportSelection:
    """``name``, ``name:start`` or ``name:start:stop``."""
    from spritestudio.models.export import ExportSelection

    name, _, rest = value.partition(":")
    start_s, _, stop_s = rest.partition(":")
    try:
        start = int(start_s) if start_s else None
        stop = int(stop_s) if stop_s else None
        return ExportSelection(animation=name, start=start, stop=stop)
    except ValueError:
        raise typer.BadParameter(f"bad frame range in '{value}'") from None


@app.command()
def create(
    name: Annotated[str, typer.Argument(help="Project name")],
    character: Annotated[
        str, typer.Option("--character", "-c", help="Name of the first character"),
    ] = "Character",
    directory: Annotated[
        Path | None,
        typer.Option("--dir", "-d", help="Project directory"),
    ] = None,
) -> None:
    """Create a new project with one character and an empty animation."""
    from spritestudio.config import load_config
    from spritestudio.models import Animation, Character, Frame, Project

    config = load_config()
    project_dir = directory or config.projects_dir / name
    project = Project(
        name=name,
        characters=[
            Character(
                name=character,
                canvas_size=config.canvas.size,
                animations=[Animation(name="Untitled Animation", frames=[Frame()])],
            )
        ],
        project_dir=project_dir,
    )
    save_path = project.save()
    typer.echo(f"Created project '{name}' at {save_path}")


@app.command()
def info(
    project_path: Annotated[Path, typer.Argument(help="Path to project directory or JSON")],
) -> None:
    """Summarise characters, parts and animations, flagging missing art."""
    from spritestudio.config import load_config
    from spritestudio.pipeline.rotation import missing_angles
    from spritestudio.pipeline.sequencer import effective_fps

    config = load_config()
    project = _load_project(project_path)
    typer.echo(f"Project: {project.name}")
    for char in project.characters:
        w, h = char.canvas_size
        typer.echo(f"Character '{char.name}' ({w}x{h})")
        for handle, part in char.parts.items():
            typer.echo(f"  part #{handle} {part.name} ({part.rotation_mode.value}, z={part.default_z})")
            for state in part.states:
                missing = missing_angles(state, part.rotation_mode)
                note = "complete" if not missing else "missing " + ", ".join(f"{a:g}" for a in missing)
                typer.echo(f"    state {state.name}: {note}")
        for anim in char.animations:
            fps = effective_fps(anim, config.animation.default_fps)
            typer.echo(f"  animation {anim.name}: {anim.frame_count} frame(s) @ {fps:g} fps")


@app.command()
def render(
    project_path: Annotated[Path, typer.Argument(help="Path to project directory or JSON")],
    animation: Annotated[str, typer.Option("--animation", "-a", help="Animation name")],
    frame: Annotated[int, typer.Option("--frame", "-f", help="Frame index")] = 0,
    character: Annotated[
        str | None, typer.Option("--character", "-c", help="Character name"),
    ] = None,
    output: Annotated[Path, typer.Option("--output", "-o", help="Output PNG")] = Path("frame.png"),
) -> None:
    """Render a single frame to a PNG."""
    from spritestudio.errors import SpriteStudioError
    from spritestudio.pipeline.compositor import render_frame

    project = _load_project(project_path)
    char = _pick_character(project, character)
    anim = char.animation(animation)
    if anim is None:
        typer.echo(f"Error: no animation named '{animation}'", err=True)
        raise typer.Exit(1)
    try:
        img = render_frame(char, anim, frame)
    except SpriteStudioError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    output.parent.mkdir(parents=True, exist_ok=True)
    img.save(output, "PNG")
    typer.echo(f"Rendered {anim.name}[{frame}] -> {output}")


@app.command()
def export(
    project_path: Annotated[Path, typer.Argument(help="Path to project directory or JSON")],
    animations: Annotated[
        list[str],
        typer.Option(
            "--animation", "-a",
            help="Animation to include, optionally NAME:START:STOP (repeatable)",
        ),
    ],
    character: Annotated[
        str | None, typer.Option("--character", "-c", help="Character name"),
    ] = None,
    output: Annotated[
        Path, typer.Option("--output", "-o", help="Atlas path (metadata gets .json)"),
    ] = Path("spritesheet.png"),
    columns: Annotated[
        int | None, typer.Option("--columns", min=1, help="Grid columns (default: auto)"),
    ] = None,
    workers: Annotated[
        int | None, typer.Option("--workers", "-w", min=1, help="Render threads"),
    ] = None,
) -> None:
    """Export selected animations into one spritesheet."""
    from spritestudio.config import load_config
    from spritestudio.errors import SpriteStudioError
    from spritestudio.models.export import ExportRequest, LayoutPolicy
    from spritestudio.pipeline.export import export_spritesheet

    config = load_config()
    project = _load_project(project_path)
    char = _pick_character(project, character)
    request = ExportRequest(
        selections=[_parse_selection(a) for a in animations],
        layout=LayoutPolicy(
            columns=columns or config.export.columns,
            strip_threshold=config.export.strip_threshold,
        ),
        workers=workers or config.export.workers,
        image_format=config.export.image_format,
    )
    try:
        result, atlas_path, meta_path = export_spritesheet(
            char, request, output, default_fps=config.animation.default_fps,
        )
    except SpriteStudioError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    meta = result.metadata
    typer.echo(
        f"Exported {len(meta.frames)} frame(s) ({meta.columns}x{meta.rows}) "
        f"-> {atlas_path}, {meta_path}"
    )
    for failure in result.failures:
        typer.echo(f"  skipped {failure}", err=True)


@app.command("export-all")
def export_all(
    project_path: Annotated[Path, typer.Argument(help="Path to project directory or JSON")],
    character: Annotated[
        str | None, typer.Option("--character", "-c", help="Character name"),
    ] = None,
    output_dir: Annotated[
        Path, typer.Option("--output", "-o", help="Output directory"),
    ] = Path("output"),
) -> None:
    """Export every animation of a character to its own spritesheet."""
    from spritestudio.config import load_config
    from spritestudio.errors import SpriteStudioError
    from spritestudio.models.export import LayoutPolicy
    from spritestudio.pipeline.export import export_all_animations

    config = load_config()
    project = _load_project(project_path)
    char = _pick_character(project, character)
    try:
        written = export_all_animations(
            char,
            output_dir,
            layout=LayoutPolicy(
                columns=config.export.columns,
                strip_threshold=config.export.strip_threshold,
            ),
            workers=config.export.workers,
            image_format=config.export.image_format,
            default_fps=config.animation.default_fps,
        )
    except SpriteStudioError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    for path, result in written:
        typer.echo(f"Wrote {path}")
        for failure in result.failures:
            typer.echo(f"  skipped {failure}", err=True)
    typer.echo(f"Exported {len(written)} animation(s) to {output_dir}")


@app.command("init-config")
def init_config(
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing file")] = False,
) -> None:
    """Write the current settings to ~/.spritestudio/config.toml."""
    from spritestudio.config import config_path, load_config, save_config

    if config_path().exists() and not force:
        typer.echo(f"Config already exists at {config_path()} (use --force)", err=True)
        raise typer.Exit(1)
    path = save_config(load_config())
    typer.echo(f"Wrote {path}")


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool, typer.Option("--version", help="Show version")
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log progress to stderr")
    ] = False,
) -> None:
    """Sprite Studio - pixel-art part compositing and spritesheet export."""
    if version:
        from spritestudio import __version__

        typer.echo(f"spritestudio {__version__}")
        raise typer.Exit()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
