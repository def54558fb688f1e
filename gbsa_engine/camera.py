"""Camera that follows a target within a deadzone and stays inside the map."""

from __future__ import annotations

from dataclasses import dataclass, field

CAMERA_LOCK_FLAG = 0x10
CAMERA_TRANSITION_FLAG = 0x20
CAMERA_SPEED_MASK = 0xF

DEFAULT_SCREEN_WIDTH = 240
DEFAULT_SCREEN_HEIGHT = 160


def _word(value: int) -> int:
    """Wrap to a signed 16-bit value."""
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def u_less_than(a: int, b: int) -> bool:
    """16-bit wrap-around comparison: true when ``a - b`` has its sign bit set."""
    return bool((a - b) & 0x8000)


@dataclass
class Pos:
    x: int = 0
    y: int = 0


@dataclass
class Camera:
    pos: Pos = field(default_factory=Pos)
    dest: Pos = field(default_factory=Pos)
    offset: Pos = field(default_factory=Pos)
    deadzone: Pos = field(default_factory=Pos)
    settings: int = 0
    speed: int = 0
    screen_width: int = DEFAULT_SCREEN_WIDTH
    screen_height: int = DEFAULT_SCREEN_HEIGHT

    @property
    def locked(self) -> bool:
        return (self.settings & CAMERA_LOCK_FLAG) == CAMERA_LOCK_FLAG

    def update(self, target: Pos, image_width: int, image_height: int) -> None:
        """Follow ``target`` when locked, then clamp to the image bounds."""
        if self.locked:
            self.pos.x = self._follow(self.pos.x, target.x, self.offset.x, self.deadzone.x)
            self.pos.y = self._follow(self.pos.y, target.y, self.offset.y, self.deadzone.y)
        self.pos.x = self._clamp(self.pos.x, image_width, self.screen_width >> 1)
        self.pos.y = self._clamp(self.pos.y, image_height, self.screen_height >> 1)

    @staticmethod
    def _follow(pos: int, target: int, offset: int, deadzone: int) -> int:
        diff = _word(pos - (target - offset))
        if diff > deadzone:
            return _word(target - offset + deadzone)
        if diff < -deadzone:
            return _word(target - offset - deadzone)
        return pos

    @staticmethod
    def _clamp(pos: int, size: int, half: int) -> int:
        if u_less_than(size - half, pos):
            return _word(size - half)
        if u_less_than(pos, half):
            return _word(half)
        return pos