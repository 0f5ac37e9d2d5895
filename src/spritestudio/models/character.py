"""Character, part and part-state models."""

from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import BaseModel, Field, PrivateAttr, model_validator

from spritestudio.errors import (
    DanglingPartReference,
    DuplicateStateError,
    PartInUseError,
)
from spritestudio.models.animation import Animation
from spritestudio.models.enums import RotationMode


class PartState(BaseModel):
    """A visual variant of a part ("straight", "flap1", ...).

    ``slots`` holds one optional base64 PNG per canonical angle, indexed by
    the owning part's :meth:`RotationMode.ordinal`.
    """

    name: str
    slots: list[str | None] = Field(default_factory=list)

    _revision: int = PrivateAttr(default=0)

    @property
    def revision(self) -> int:
        """Bumped whenever the authored-image set changes."""
        return self._revision

    def has_images(self) -> bool:
        return any(slot is not None for slot in self.slots)

    def image_at(self, ordinal: int) -> str | None:
        """Art at *ordinal*, or ``None`` when the slot is empty or past the table."""
        if 0 <= ordinal < len(self.slots):
            return self.slots[ordinal]
        return None

    def put(self, ordinal: int, data: str | None) -> None:
        self.slots[ordinal] = data
        self._revision += 1

    def replace_slots(self, slots: list[str | None]) -> None:
        self.slots = slots
        self._revision += 1

    def fit(self, mode: RotationMode) -> None:
        """Pad or truncate the slot table to *mode*'s angle count.

        Raises
        ------
        ValueError
            If art is authored in a slot past *mode*'s last angle.
        """
        lost = [i for i in range(mode.count, len(self.slots)) if self.slots[i] is not None]
        if lost:
            msg = (
                f"state '{self.name}' has art in slot(s) {lost}, "
                f"beyond the {mode.count} angles of {mode.value}"
            )
            raise ValueError(msg)
        if len(self.slots) != mode.count:
            self.slots = (self.slots + [None] * mode.count)[: mode.count]
            self._revision += 1


class Part(BaseModel):
    """A reusable visual element of a character, e.g. "head"."""

    name: str
    rotation_mode: RotationMode = RotationMode.DEG45
    default_z: int = 0
    states: list[PartState] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_states(self) -> Part:
        seen: set[str] = set()
        for state in self.states:
            if state.name in seen:
                msg = f"part '{self.name}' has duplicate state '{state.name}'"
                raise ValueError(msg)
            seen.add(state.name)
            state.fit(self.rotation_mode)
        return self

    def set_rotation_mode(self, mode: RotationMode) -> None:
        """Switch to *mode*, moving every state's art to its angle's new slot.

        Nothing changes if any state has art at an angle *mode* lacks.
        """
        current = self.rotation_mode
        for state in self.states:
            stranded = [
                current.angle_at(i)
                for i, s in enumerate(state.slots)
                if s is not None and current.angle_at(i) % mode.step != 0
            ]
            if stranded:
                angles = ", ".join(f"{a:g}" for a in stranded)
                msg = f"part '{self.name}' state '{state.name}' has art at {angles}, not in {mode.value}"
                raise ValueError(msg)
        for state in self.states:
            slots: list[str | None] = [None] * mode.count
            for i, data in enumerate(state.slots):
                if data is not None:
                    slots[mode.ordinal(current.angle_at(i))] = data
            state.replace_slots(slots)
        self.rotation_mode = mode

    def state(self, name: str) -> PartState | None:
        return next((s for s in self.states if s.name == name), None)

    def add_state(self, name: str) -> PartState:
        if self.state(name) is not None:
            msg = f"part '{self.name}' already has a state named '{name}'"
            raise DuplicateStateError(msg)
        state = PartState(name=name)
        state.fit(self.rotation_mode)
        self.states.append(state)
        return state

    def remove_state(self, name: str) -> None:
        self.states = [s for s in self.states if s.name != name]

    def _require_state(self, name: str) -> PartState:
        state = self.state(name)
        if state is None:
            msg = f"part '{self.name}' has no state '{name}'"
            raise KeyError(msg)
        return state

    def set_image(self, state: str, angle: float, data: str) -> None:
        """Author *data* (base64 PNG) for *state* at a canonical *angle*."""
        ordinal = self.rotation_mode.ordinal(angle)
        self._require_state(state).put(ordinal, data)

    def clear_image(self, state: str, angle: float) -> None:
        ordinal = self.rotation_mode.ordinal(angle)
        self._require_state(state).put(ordinal, None)

    def authored_angles(self, state: str) -> list[float]:
        slots = self._require_state(state).slots
        return [self.rotation_mode.angle_at(i) for i, s in enumerate(slots) if s is not None]


class Character(BaseModel):
    """A named set of parts plus the animations built from them.

    Parts live in an arena keyed by integer handles; placements refer to
    parts by handle only.
    """

    id: UUID = Field(default_factory=uuid4)
    name: str
    canvas_size: tuple[int, int] = (64, 64)
    parts: dict[int, Part] = Field(default_factory=dict)
    animations: list[Animation] = Field(default_factory=list)
    next_handle: int = 1

    @model_validator(mode="after")
    def _check_canvas_and_handles(self) -> Character:
        width, height = self.canvas_size
        if width <= 0 or height <= 0:
            msg = f"canvas size must be positive, got {width}x{height}"
            raise ValueError(msg)
        if self.parts:
            self.next_handle = max(self.next_handle, max(self.parts) + 1)
        return self

    # -- parts ------------------------------------------------------------

    def add_part(self, part: Part) -> int:
        handle = self.next_handle
        self.next_handle += 1
        self.parts[handle] = part
        return handle

    def part(self, handle: int) -> Part:
        try:
            return self.parts[handle]
        except KeyError:
            msg = f"character '{self.name}' has no part with handle {handle}"
            raise DanglingPartReference(msg) from None

    def find_part(self, name: str) -> int | None:
        """Handle of the first part called *name*, if any."""
        return next((h for h, p in self.parts.items() if p.name == name), None)

    def part_references(self, handle: int) -> list[tuple[str, int]]:
        """Every ``(animation name, frame index)`` whose frame places *handle*."""
        refs: list[tuple[str, int]] = []
        for anim in self.animations:
            for idx, frame in enumerate(anim.frames):
                if any(p.part == handle for p in frame.placed_parts):
                    refs.append((anim.name, idx))
        return refs

    def remove_part(self, handle: int) -> Part:
        """Delete a part, refusing while any placement still uses it."""
        part = self.part(handle)
        refs = self.part_references(handle)
        if refs:
            raise PartInUseError(part.name, refs)
        del self.parts[handle]
        for anim in self.animations:
            anim.z_overrides.pop(handle, None)
            for frame in anim.frames:
                frame.z_overrides.pop(handle, None)
        return part

    # -- animations -------------------------------------------------------

    def animation(self, name: str) -> Animation | None:
        return next((a for a in self.animations if a.name == name), None)

    def add_animation(self, animation: Animation) -> Animation:
        if self.animation(animation.name) is not None:
            msg = f"character '{self.name}' already has an animation named '{animation.name}'"
            raise ValueError(msg)
        self.animations.append(animation)
        return animation

    def remove_animation(self, name: str) -> None:
        self.animations = [a for a in self.animations if a.name != name]

    def clone(self, name: str) -> Character:
        """Deep copy under a new name and id."""
        return self.model_copy(deep=True, update={"id": uuid4(), "name": name})
