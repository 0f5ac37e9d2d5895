"""Sprite Studio - pixel-art part compositing and spritesheet engine."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("spritestudio")
except PackageNotFoundError:
    __version__ = "unknown"
