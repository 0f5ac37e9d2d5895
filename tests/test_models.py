"""Tests for Sprite Studio data models."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from spritestudio.errors import (
    DanglingPartReference,
    DuplicateStateError,
    FrameOutOfRange,
    InvalidAngle,
    PartInUseError,
)
from spritestudio.models import (
    Animation,
    Character,
    Frame,
    Part,
    PartState,
    PlacedPart,
    Project,
    ProjectLoadError,
    ReferenceLayer,
    RotationMode,
)

from conftest import make_art


def test_enums():
    assert RotationMode.DEG45 == "deg45"
    assert RotationMode.DEG22_5 == "deg22_5"
    assert RotationMode("deg22_5").count == 16


def test_reference_layer_defaults():
    ref = ReferenceLayer()
    assert ref.visible is True
    assert ref.opacity == 0.5
    with pytest.raises(ValidationError):
        ReferenceLayer(opacity=1.5)
    with pytest.raises(ValidationError):
        ReferenceLayer(scale=0)


def test_animation_fps_must_be_positive():
    assert Animation(name="a").fps is None
    with pytest.raises(ValidationError):
        Animation(name="a", fps=0)


def test_frame_placement_lookup():
    frame = Frame(placed_parts=[PlacedPart(id=4, part=1, state="s"), PlacedPart(id=5, part=1, state="s")])
    assert frame.placement(5).id == 5
    assert frame.placement(6) is None
    frame.remove_placement(4)
    assert [p.id for p in frame.placed_parts] == [5]


# --- parts and states ---


def test_state_slots_sized_to_mode():
    assert len(Part(name="a", states=[PartState(name="s")]).states[0].slots) == 8
    wide = Part(name="b", rotation_mode=RotationMode.DEG22_5, states=[PartState(name="s")])
    assert len(wide.states[0].slots) == 16
    assert len(wide.add_state("t").slots) == 16


def test_duplicate_state_rejected():
    part = Part(name="head", states=[PartState(name="straight")])
    with pytest.raises(DuplicateStateError):
        part.add_state("straight")
    with pytest.raises(ValidationError, match="duplicate state"):
        Part(name="head", states=[PartState(name="s"), PartState(name="s")])


def test_set_and_clear_image():
    part = Part(name="head", states=[PartState(name="s")])
    part.set_image("s", 90, make_art())
    assert part.authored_angles("s") == [90]
    assert part.states[0].has_images()
    part.clear_image("s", 90)
    assert part.authored_angles("s") == []
    with pytest.raises(InvalidAngle):
        part.set_image("s", 30, make_art())
    with pytest.raises(KeyError):
        part.set_image("nope", 0, make_art())


def test_revision_bumps_on_change():
    part = Part(name="head", states=[PartState(name="s")])
    before = part.states[0].revision
    part.set_image("s", 0, make_art())
    assert part.states[0].revision > before


# --- character ---


def test_character_defaults():
    char = Character(name="Hero")
    assert char.canvas_size == (64, 64)
    assert char.parts == {}


@pytest.mark.parametrize("size", [(0, 64), (64, -1)])
def test_canvas_size_must_be_positive(size: tuple[int, int]):
    with pytest.raises(ValidationError, match="canvas size"):
        Character(name="Hero", canvas_size=size)


def test_part_handles_are_stable():
    char = Character(name="Hero")
    a = char.add_part(Part(name="a"))
    b = char.add_part(Part(name="b"))
    assert (a, b) == (1, 2)
    char.remove_part(a)
    assert char.add_part(Part(name="c")) == 3
    assert char.part(b).name == "b"
    with pytest.raises(DanglingPartReference):
        char.part(a)


def test_remove_part_in_use_leaves_character_unchanged(sample_character: Character):
    head_h = sample_character.find_part("head")
    before = sample_character.model_dump()
    with pytest.raises(PartInUseError) as excinfo:
        sample_character.remove_part(head_h)
    assert excinfo.value.part_name == "head"
    assert ("idle", 0) in excinfo.value.references
    assert len(excinfo.value.references) == 6
    assert sample_character.model_dump() == before


def test_remove_unused_part_drops_z_overrides(sample_character: Character):
    torso_h = sample_character.find_part("torso")
    idle = sample_character.animations[0]
    idle.z_overrides[torso_h] = 3
    idle.frames[0].z_overrides[torso_h] = 4
    for anim in sample_character.animations:
        for frame in anim.frames:
            frame.placed_parts = [p for p in frame.placed_parts if p.part != torso_h]
    removed = sample_character.remove_part(torso_h)
    assert removed.name == "torso"
    assert torso_h not in idle.z_overrides
    assert torso_h not in idle.frames[0].z_overrides


def test_duplicate_animation_rejected(sample_character: Character):
    with pytest.raises(ValueError, match="already has an animation"):
        sample_character.add_animation(Animation(name="idle"))
    sample_character.remove_animation("idle")
    assert sample_character.animation("idle") is None


def test_clone_is_deep(sample_character: Character):
    copy = sample_character.clone("Hero 2")
    assert copy.name == "Hero 2"
    assert copy.id != sample_character.id
    copy.animations[0].frames[0].placed_parts[0].angle = 90
    assert sample_character.animations[0].frames[0].placed_parts[0].angle == 0


# --- project ---


def test_project_round_trip(sample_character: Character, tmp_path: Path):
    torso_h = sample_character.find_part("torso")
    sample_character.animations[0].frames[2].z_overrides[torso_h] = 7
    project = Project(name="demo", characters=[sample_character], project_dir=tmp_path)

    saved = project.save()
    assert saved == tmp_path / "project.json"
    assert json.loads(saved.read_text())["version"] == "2.0"

    loaded = Project.load(tmp_path)
    char = loaded.characters[0]
    assert char.name == "Hero"
    assert char.canvas_size == (16, 16)
    assert set(char.parts) == set(sample_character.parts)
    assert char.animations[0].frames[2].z_overrides == {torso_h: 7}
    assert char.part(char.find_part("head")).authored_angles("straight") == [0, 90]
    assert char.next_handle == 3


def test_load_reseeds_placement_ids(sample_character: Character, tmp_path: Path):
    Project(name="demo", characters=[sample_character]).save(tmp_path / "p.json")
    loaded = Project.load(tmp_path / "p.json")
    assert loaded.next_placement_id() == 3
    assert loaded.next_placement_id() == 4


def test_place_numbers_duplicate_layers(sample_character: Character):
    project = Project(name="demo", characters=[sample_character])
    head_h = sample_character.find_part("head")
    first = project.place(sample_character, "walk", 0, head_h, "straight", angle=90)
    second = project.place(sample_character, "walk", 0, head_h, "straight")
    assert first.layer_name == "head"
    assert second.layer_name == "head 2"
    assert second.id == first.id + 1
    assert sample_character.animations[1].frames[0].placed_parts[-1] is second


def test_place_validates_target(sample_character: Character):
    project = Project(name="demo", characters=[sample_character])
    head_h = sample_character.find_part("head")
    with pytest.raises(FrameOutOfRange):
        project.place(sample_character, "walk", 5, head_h, "straight")
    with pytest.raises(KeyError):
        project.place(sample_character, "jump", 0, head_h, "straight")
    with pytest.raises(InvalidAngle):
        project.place(sample_character, "walk", 0, head_h, "straight", angle=10)
    with pytest.raises(DanglingPartReference):
        project.place(sample_character, "walk", 0, 42, "straight")


def test_duplicate_character_rejected(sample_character: Character):
    project = Project(name="demo", characters=[sample_character])
    with pytest.raises(ValueError, match="already has a character"):
        project.add_character(Character(name="Hero"))
    assert project.character("Hero") is sample_character


def test_save_without_path():
    with pytest.raises(ValueError, match="No save path"):
        Project(name="demo").save()


def test_load_missing_file(tmp_path: Path):
    with pytest.raises(ProjectLoadError, match="not found"):
        Project.load(tmp_path / "missing.json")


def test_load_invalid_json(tmp_path: Path):
    bad = tmp_path / "project.json"
    bad.write_text("{not json")
    with pytest.raises(ProjectLoadError, match="invalid JSON"):
        Project.load(tmp_path)


def test_load_invalid_structure(tmp_path: Path):
    bad = tmp_path / "project.json"
    bad.write_text(json.dumps({"name": "x", "characters": [{"canvas_size": [1, 1]}]}))
    with pytest.raises(ProjectLoadError, match="invalid structure"):
        Project.load(bad)


def test_mode_change_keeps_art_at_its_angle():
    part = Part(name="cape", rotation_mode=RotationMode.DEG22_5, states=[PartState(name="s")])
    part.set_image("s", 0, make_art())
    part.set_image("s", 90, make_art())
    part.set_rotation_mode(RotationMode.DEG45)
    assert part.rotation_mode == RotationMode.DEG45
    assert len(part.states[0].slots) == 8
    assert part.authored_angles("s") == [0, 90]


def test_mode_change_refused_when_art_would_be_lost():
    part = Part(
        name="cape",
        rotation_mode=RotationMode.DEG22_5,
        states=[PartState(name="a"), PartState(name="b")],
    )
    part.set_image("a", 0, make_art())
    part.set_image("b", 22.5, make_art())
    before = part.model_dump()
    with pytest.raises(ValueError, match="22.5"):
        part.set_rotation_mode(RotationMode.DEG45)
    assert part.model_dump() == before


def test_short_slot_table_is_padded_on_load():
    part = Part.model_validate({"name": "arm", "states": [{"name": "s", "slots": [make_art()]}]})
    assert len(part.states[0].slots) == 8
    assert part.authored_angles("s") == [0]


def test_art_past_the_mode_is_rejected_not_dropped():
    data = {
        "name": "arm",
        "rotation_mode": "deg45",
        "states": [{"name": "s", "slots": [None] * 15 + [make_art()]}],
    }
    with pytest.raises(ValidationError, match="beyond the 8 angles"):
        Part.model_validate(data)


def test_project_with_stray_art_fails_to_load(sample_character: Character, tmp_path: Path):
    saved = Project(name="demo", characters=[sample_character]).save(tmp_path / "p.json")
    data = json.loads(saved.read_text())
    part = next(iter(data["characters"][0]["parts"].values()))
    part["states"][0]["slots"] += [None, make_art()]
    saved.write_text(json.dumps(data))
    with pytest.raises(ProjectLoadError, match="invalid structure"):
        Project.load(saved)
