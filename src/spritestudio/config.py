"""Application configuration with pydantic-settings + TOML."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict, TomlConfigSettingsSource

logger = logging.getLogger(__name__)


def _default_config_dir() -> Path:
    return Path.home() / ".spritestudio"


def _default_projects_dir() -> Path:
    return _default_config_dir() / "projects"


def config_path() -> Path:
    """Location of the user's ``config.toml``."""
    return _default_config_dir() / "config.toml"


class ExportSettings(BaseSettings):
    """Spritesheet export defaults."""

    model_config = SettingsConfigDict(env_prefix="SPRITESTUDIO_EXPORT_")

    columns: int | None = Field(default=None, gt=0)
    strip_threshold: int = Field(default=0, ge=0)
    workers: int | None = Field(default=None, gt=0)
    image_format: str = "png"


class AnimationSettings(BaseSettings):
    """Playback defaults applied to animations without their own fps."""

    model_config = SettingsConfigDict(env_prefix="SPRITESTUDIO_ANIMATION_")

    default_fps: float = Field(default=12, gt=0)


class CanvasSettings(BaseSettings):
    """Canvas size given to newly created characters."""

    model_config = SettingsConfigDict(env_prefix="SPRITESTUDIO_CANVAS_")

    width: int = Field(default=64, gt=0)
    height: int = Field(default=64, gt=0)

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)


class AppConfig(BaseSettings):
    """Root application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPRITESTUDIO_",
        env_nested_delimiter="__",
    )

    config_dir: Path = Field(default_factory=_default_config_dir)
    projects_dir: Path = Field(default_factory=_default_projects_dir)
    export: ExportSettings = Field(default_factory=ExportSettings)
    animation: AnimationSettings = Field(default_factory=AnimationSettings)
    canvas: CanvasSettings = Field(default_factory=CanvasSettings)

    @classmethod
    def settings_customise_sources(cls, settings_cls, **kwargs):  # type: ignore[override]
        toml_path = config_path()
        sources = (
            kwargs.get("init_settings"),
            kwargs.get("env_settings"),
        )
        if toml_path.exists():
            sources = (*sources, TomlConfigSettingsSource(settings_cls, toml_file=toml_path))
        return (*sources, kwargs.get("dotenv_settings"), kwargs.get("file_secret_settings"))

    def ensure_dirs(self) -> None:
        """Create config and project directories if they don't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.projects_dir.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    """Load application config, creating defaults if needed."""
    config = AppConfig()
    config.ensure_dirs()
    return config


def save_config(config: AppConfig, path: Path | None = None) -> Path:
    """Write *config* as TOML, returning the path written.

    Unset optional values are omitted because TOML has no null.
    """
    import tomli_w

    target = path or config_path()
    data = config.model_dump(mode="json", exclude_none=True)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(tomli_w.dumps(data).encode())
    logger.info("Wrote config %s", target)
    return target
