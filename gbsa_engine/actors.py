"""Scene actors: animation frames, sprite rendering and off-screen culling."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass, field
from enum import IntEnum

from .camera import Pos
from .video import S_FLIPX, Video

MAX_ACTORS = 31
MAX_ACTIVE_ACTORS = 11
MAX_SPRITES = 19
MAX_FRAMES = 25

ACTOR_MOVE_ENABLED = 0x80
ACTOR_NOCLIP = 0x40
ACTOR_MIN_X = 0
ACTOR_MIN_Y = 8
NO_ACTOR_COLLISION = 0xFF

# Actors further than this many pixels outside the screen are culled.
_CULL_MARGIN = 32

# Animation speed -> the frame interval (mask) on which the frame advances.
_ANIM_SPEED_MASKS = {4: 0x07, 3: 0x0F, 2: 0x1F, 1: 0x3F, 0: 0x7F}


class SpriteType(IntEnum):
    """How an actor's sprite sheet is laid out."""

    STATIC = 0
    ACTOR = 1
    ACTOR_ANIMATED = 2


@dataclass
class Actor:
    """A scene actor drawn with two adjacent 8x16 hardware sprites."""

    pos: Pos = field(default_factory=Pos)
    dir: Pos = field(default_factory=Pos)
    start_pos: Pos = field(default_factory=Pos)
    move_speed: int = 1
    moving: bool = False
    sprite: int = 0
    sprite_index: int = 0
    palette_index: int = 0
    frame: int = 0
    frames_len: int = 1
    animate: bool = False
    enabled: bool = True
    frame_offset: int = 0
    rerender: bool = False
    anim_speed: int = 3
    pinned: bool = False
    collisions_enabled: bool = True
    collision_group: int = 0
    sprite_type: SpriteType = SpriteType.STATIC
    hit_actor: int = 0
    script_control: bool = False
    movement_ctx: int = 0

    @property
    def on_tile(self) -> bool:
        """True when the actor sits exactly on an 8x8 tile boundary."""
        return (self.pos.x & 7) == 0 and (self.pos.y & 7) == 0


def _is_neg(value: int) -> bool:
    return bool(value & 0x80)


def actor_tiles(actor: Actor) -> tuple[int, int, bool]:
    """Tiles for the actor's left and right sprites, and whether it is flipped.

    Non-static actors pick a frame block from their facing direction and are
    mirrored when facing left.
    """
    offset = 0
    flip = False
    if actor.sprite_type != SpriteType.STATIC:
        animated = actor.sprite_type == SpriteType.ACTOR_ANIMATED
        if _is_neg(actor.dir.y):
            offset = 1 + (1 if animated else 0)
        elif actor.dir.y == 0 and actor.dir.x != 0:
            offset = 2 + (2 if animated else 0)
        flip = _is_neg(actor.dir.x)
    tile = ((actor.sprite + actor.frame + offset) << 2) & 0xFF
    if flip:
        return tile + 2, tile, True
    return tile, tile + 2, False


def _advance_animation(actor: Actor, game_time: int) -> None:
    if (game_time & 0x7) != 0:
        return
    if not ((actor.moving and actor.sprite_type != SpriteType.STATIC) or actor.animate):
        return
    mask = _ANIM_SPEED_MASKS.get(actor.anim_speed)
    if mask is not None and (game_time & mask) == 0:
        actor.frame = (actor.frame + 1) & 0xFF
    if actor.frame == actor.frames_len:
        actor.frame = 0
    actor.rerender = True


def _render(actor: Actor, video: Video) -> None:
    k = actor.sprite_index
    first, second, flip = actor_tiles(actor)
    props = actor.palette_index if video.cgb else 0
    if flip:
        props |= S_FLIPX
    video.set_sprite_prop(k, props)
    video.set_sprite_prop(k + 1, props)
    video.set_sprite_tile(k, first)
    video.set_sprite_tile(k + 1, second)
    actor.rerender = False


def update_actors(actors: Sequence[Actor], active: MutableSequence[int], video: Video,
                  scroll_x: int, scroll_y: int, game_time: int, script_actor: int,
                  screen_width: int | None = None,
                  screen_height: int | None = None) -> list[int]:
    """Animate, redraw and place every active actor for one frame.

    ``active`` holds indices into ``actors``. Actors that have wandered off
    screen (checked every fourth frame, never the actor running the main
    script) are removed from ``active``; their indices are returned.
    """
    if screen_width is None:
        screen_width = video.config.width
    if screen_height is None:
        screen_height = video.config.height
    game_time &= 0xFF

    offscreen: list[int] = []
    for a in active:
        actor = actors[a]
        k = actor.sprite_index
        if not actor.enabled:
            video.move_sprite(k, 0, 0)
            video.move_sprite(k + 1, 0, 0)
            continue

        if actor.pinned:
            screen_x = (8 + actor.pos.x) & 0xFFFF
            screen_y = (8 + actor.pos.y) & 0xFFFF
        else:
            screen_x = (8 + actor.pos.x - scroll_x) & 0xFFFF
            screen_y = (8 + actor.pos.y - scroll_y) & 0xFFFF

        _advance_animation(actor, game_time)
        if actor.rerender:
            _render(actor, video)

        video.move_sprite(k, screen_x, screen_y)
        video.move_sprite(k + 1, screen_x + 8, screen_y)

        if (game_time & 0x3) == 0 and a != script_actor:
            if (((screen_x + _CULL_MARGIN) & 0xFFFF) >= screen_width + 2 * _CULL_MARGIN
                    or ((screen_y + _CULL_MARGIN) & 0xFFFF) >= screen_height + 2 * _CULL_MARGIN):
                offscreen.append(a)

    for a in offscreen:
        active.remove(a)
    return offscreen