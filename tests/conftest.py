"""Shared fixtures for Sprite Studio tests."""

from __future__ import annotations

import pytest
from PIL import Image

from spritestudio.models import (
    Animation,
    Character,
    Frame,
    Part,
    PartState,
    PlacedPart,
    RotationMode,
)
from spritestudio.pipeline.imaging import encode_image

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def make_art(
    size: tuple[int, int] = (4, 4),
    color: tuple[int, int, int, int] = RED,
    *,
    marker: tuple[int, int] | None = None,
) -> str:
    """Solid-colour base64 PNG, optionally with one white marker pixel."""
    img = Image.new("RGBA", size, color)
    if marker is not None:
        img.putpixel(marker, (255, 255, 255, 255))
    return encode_image(img)


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep config files out of the real home directory and out of tmp_path."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def head_state() -> PartState:
    """Head art at 0, 45 and 90 degrees; everything else missing."""
    part = Part(name="head", states=[PartState(name="straight")])
    part.set_image("straight", 0, make_art(color=RED))
    part.set_image("straight", 45, make_art(color=GREEN))
    part.set_image("straight", 90, make_art(color=BLUE))
    return part.states[0]


@pytest.fixture
def sample_character() -> Character:
    """16x16 character: torso (z=0) and head (z=10), two animations."""
    char = Character(name="Hero", canvas_size=(16, 16))

    torso = Part(name="torso", default_z=0, states=[PartState(name="default")])
    torso.set_image("default", 0, make_art((8, 8), BLUE))
    torso_h = char.add_part(torso)

    head = Part(name="head", default_z=10, states=[PartState(name="straight")])
    head.set_image("straight", 0, make_art((6, 6), RED))
    head.set_image("straight", 90, make_art((6, 6), GREEN, marker=(0, 0)))
    head_h = char.add_part(head)

    def frame(head_angle: float = 0) -> Frame:
        return Frame(
            placed_parts=[
                PlacedPart(id=1, part=head_h, state="straight", angle=head_angle, position=(5, 0)),
                PlacedPart(id=2, part=torso_h, state="default", position=(4, 6)),
            ]
        )

    char.animations = [
        Animation(name="idle", fps=10, frames=[frame(), frame(), frame(90), frame(270)]),
        Animation(name="walk", frames=[frame(90), frame(270)]),
    ]
    return char


@pytest.fixture
def wide_part() -> Part:
    return Part(name="cape", rotation_mode=RotationMode.DEG22_5, states=[PartState(name="flap1")])
