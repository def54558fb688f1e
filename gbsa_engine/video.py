"""Emulated handheld video layer mapped onto a tiled 240x160 display."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

LCD_WIDTH = 240
LCD_HEIGHT = 160

WINDOW_TILE_WIDTH = 20
WINDOW_TILE_HEIGHT = 18
WINDOW_WIDTH = WINDOW_TILE_WIDTH << 3
WINDOW_HEIGHT = WINDOW_TILE_HEIGHT << 3
MIN_WND_POS_X = 7
MIN_WND_POS_Y = 0
MAX_WND_POS_X = WINDOW_WIDTH + MIN_WND_POS_X - 1
MAX_WND_POS_Y = WINDOW_HEIGHT + MIN_WND_POS_Y - 1

SCREEN_MAP_HEIGHT_SHIFT = 5

BG_ID_BG = 0
BG_ID_WINDOW = 1

S_FLIPX = 0x20
S_FLIPY = 0x40

J_RIGHT = 1 << 0
J_LEFT = 1 << 1
J_UP = 1 << 2
J_DOWN = 1 << 3
J_A = 1 << 4
J_B = 1 << 5
J_SELECT = 1 << 6
J_START = 1 << 7

KEY_A = 0x0001
KEY_B = 0x0002
KEY_SELECT = 0x0004
KEY_START = 0x0008
KEY_RIGHT = 0x0010
KEY_LEFT = 0x0020
KEY_UP = 0x0040
KEY_DOWN = 0x0080

_KEY_TO_JOYPAD = (
    (KEY_A, J_A),
    (KEY_B, J_B),
    (KEY_SELECT, J_SELECT),
    (KEY_START, J_START),
    (KEY_UP, J_UP),
    (KEY_LEFT, J_LEFT),
    (KEY_RIGHT, J_RIGHT),
    (KEY_DOWN, J_DOWN),
)

DCNT_MODE0 = 0x0000
DCNT_OBJ_1D = 0x0040
DCNT_BLANK = 0x0080
DCNT_BG0 = 0x0100
DCNT_BG1 = 0x0200
DCNT_BG2 = 0x0400
DCNT_BG3 = 0x0800
DCNT_OBJ = 0x1000
DCNT_WIN0 = 0x2000
DCNT_WIN1 = 0x4000

VRAM_SIZE = 0x18000
TILE_BYTES = 16
BG_MAP = 0x8000
FG_MAP = 0x9000
WINDOW_MAP = 0xA000
SPRITE_TILES = 0x10000
BLANK_TILE = 0x3FE
SOLID_TILE = 0x3FF
BG_COLOR_OFFSET = 0x88888888

OAM_ENTRIES = 128
OBJ_HIDE = 0x0200

FADE_LEVELS = (16, 12, 9, 6, 3, 0)


@dataclass(frozen=True)
class ScreenConfig:
    """Visible screen size in tiles and the width of the background map."""

    tile_width: int
    tile_height: int
    map_width_shift: int

    @classmethod
    def for_mode(cls, mode: int) -> ScreenConfig:
        """Screen for widescreen mode 0 (160x144), 1 (224x144) or 2 (240x160)."""
        match mode:
            case 0:
                return cls(20, 18, 5)
            case 1:
                return cls(28, 18, 5)
            case 2:
                return cls(30, 20, 6)
        raise ValueError(f"unknown widescreen mode {mode}")

    @property
    def width(self) -> int:
        return self.tile_width << 3

    @property
    def height(self) -> int:
        return self.tile_height << 3

    @property
    def map_width(self) -> int:
        return 1 << self.map_width_shift

    @property
    def map_height(self) -> int:
        return 1 << SCREEN_MAP_HEIGHT_SHIFT


def _expand_byte(value: int) -> int:
    # Leftmost pixel (bit 7) goes to the lowest nibble.
    result = 0
    for bit in range(8):
        if value & (1 << bit):
            result |= 1 << (4 * (7 - bit))
    return result


_EXPAND = tuple(_expand_byte(v) for v in range(256))


def expand_tile_row(low: int, high: int) -> int:
    """Convert one 2bpp tile row (two bit planes) into a 4bpp 32-bit row."""
    if not (0 <= low <= 0xFF and 0 <= high <= 0xFF):
        raise ValueError("tile row bytes must be in 0..255")
    return _EXPAND[low] | (_EXPAND[high] << 1)


def decode_joypad(keys: int) -> int:
    """Map a raw key register value (cleared bit = pressed) to joypad bits."""
    pressed = (keys ^ 0xFFFF) & 0xFFFF
    result = 0
    for key, joy in _KEY_TO_JOYPAD:
        if pressed & key:
            result |= joy
    return result


@dataclass
class OamEntry:
    attr0: int = 0
    attr1: int = 0
    attr2: int = 0


class Video:
    """Tile, map, sprite, palette and blend state of the emulated display."""

    def __init__(self, config: ScreenConfig | None = None, cgb: bool = True) -> None:
        self.config = config if config is not None else ScreenConfig.for_mode(2)
        self.cgb = cgb
        self.vbk = 0
        self.vram = bytearray(VRAM_SIZE)
        self.oam = [OamEntry(attr0=0x8200, attr2=0x0C00) for _ in range(OAM_ENTRIES)]
        self.bg_palette = [0] * 256
        self.obj_palette = [0] * 256

        self.dispcnt = DCNT_BLANK
        self.win0 = (0, 0, 0, 0)
        self.win1 = (0, 0, 0, 0)
        self.bg0_hofs = 0
        self.bg0_vofs = 0
        self.bg1_hofs = 0
        self.bg1_vofs = 0
        self.bldy = 0
        self.bldcnt = 0

        self.bg_x_offset = 0
        self.bg_y_offset = 0
        self.viewport_width = 0
        self.viewport_height = 0
        self._shadow_hofs = 0
        self._shadow_vofs = 0
        self.win_x = 0
        self.win_y = MAX_WND_POS_Y + 1

        for offset in range(0, 0x1000, 2):
            self._write16(BG_MAP + offset, SOLID_TILE)
            self._write16(FG_MAP + offset, BLANK_TILE)
            self._write16(WINDOW_MAP + offset, SOLID_TILE)
        self.vram[BLANK_TILE * 32:BLANK_TILE * 32 + 32] = bytes(32)
        self.vram[SOLID_TILE * 32:SOLID_TILE * 32 + 32] = b"\xff" * 32

        self.update_viewport_size(self.config.width, self.config.height)
        self.dispcnt = (DCNT_MODE0 | DCNT_BG0 | DCNT_BG1 | DCNT_BG3
                        | DCNT_OBJ_1D | DCNT_WIN1)

    def _read16(self, address: int) -> int:
        return int.from_bytes(self.vram[address:address + 2], "little")

    def _write16(self, address: int, value: int) -> None:
        self.vram[address:address + 2] = (value & 0xFFFF).to_bytes(2, "little")

    def _write32(self, address: int, value: int) -> None:
        self.vram[address:address + 4] = (value & 0xFFFFFFFF).to_bytes(4, "little")

    def _entry(self, sprite_id: int) -> OamEntry:
        if not 0 <= sprite_id < OAM_ENTRIES:
            raise IndexError(f"sprite {sprite_id} out of range")
        return self.oam[sprite_id]

    @staticmethod
    def _tiles(first: int, count: int, data: bytes) -> list[tuple[int, bytes]]:
        if count < 0:
            raise ValueError("count must not be negative")
        if len(data) < count * TILE_BYTES:
            raise ValueError(f"need {count * TILE_BYTES} bytes of tile data, got {len(data)}")
        return [((first + i) & 0xFF, bytes(data[i * TILE_BYTES:(i + 1) * TILE_BYTES]))
                for i in range(count)]

    def _write_tile(self, base: int, tile_id: int, tile: bytes, color_offset: int) -> None:
        address = base + (tile_id << 5)
        for row in range(8):
            value = expand_tile_row(tile[2 * row], tile[2 * row + 1]) | color_offset
            self._write32(address + 4 * row, value)

    def set_bkg_data(self, first: int, count: int, data: bytes) -> None:
        """Load ``count`` 16-byte background tiles starting at tile ``first``."""
        for tile_id, tile in self._tiles(first, count, data):
            self._write_tile(0, tile_id, tile, BG_COLOR_OFFSET)

    def set_sprite_data(self, first: int, count: int, data: bytes) -> None:
        """Load ``count`` 16-byte sprite tiles starting at tile ``first``."""
        for tile_id, tile in self._tiles(first, count, data):
            self._write_tile(SPRITE_TILES, tile_id, tile, 0)

    def move_sprite(self, sprite_id: int, x: int, y: int) -> None:
        """Place a sprite using handheld coordinates (offset by 8, 16)."""
        entry = self._entry(sprite_id)
        x -= 8
        y -= 16
        if x <= -8 or y <= -16:
            entry.attr0 |= OBJ_HIDE
        else:
            entry.attr0 &= ~OBJ_HIDE & 0xFFFF
        entry.attr0 = (entry.attr0 & ~0x00FF & 0xFFFF) | ((y + self.bg_y_offset) & 0xFF)
        entry.attr1 = (entry.attr1 & ~0x01FF & 0xFFFF) | ((x + self.bg_x_offset) & 0x1FF)

    def set_sprite_tile(self, sprite_id: int, tile: int) -> None:
        """Select an 8x16 tile pair; the low bit of ``tile`` is ignored."""
        entry = self._entry(sprite_id)
        tile &= 0xFE
        entry.attr0 = (entry.attr0 & 0x3FF) | 0x8000
        entry.attr2 = (entry.attr2 & 0xFC00) | (tile & 0x3FF)

    def set_sprite_prop(self, sprite_id: int, props: int) -> None:
        """Apply flip flags and palette selection to a sprite."""
        entry = self._entry(sprite_id)
        entry.attr1 = ((entry.attr1 & 0x03FF)
                       | (0x1000 if props & S_FLIPX else 0)
                       | (0x2000 if props & S_FLIPY else 0))
        if self.cgb:
            entry.attr2 = (entry.attr2 & 0x0FFF) | ((props & 0x07) << 12)
        else:
            entry.attr2 = (entry.attr2 & 0x0FFF) | ((props & 0x10) << 8)

    def fill_win_rect(self, x: int, y: int, width: int, height: int, tile: int) -> None:
        """Fill a window rectangle with a tile, or an attribute when vbk is set."""
        write = self.set_bg_attr if self.vbk else self.set_bg_tile
        for iy in range(height):
            for ix in range(width):
                write(BG_ID_WINDOW, x + ix, y + iy, tile)

    def set_win_tiles(self, x: int, y: int, width: int, height: int,
                      tiles: Sequence[int]) -> None:
        """Copy a row-major block of tiles (or attributes) into the window."""
        if len(tiles) < width * height:
            raise ValueError(f"need {width * height} tiles, got {len(tiles)}")
        write = self.set_bg_attr if self.vbk else self.set_bg_tile
        values = iter(tiles)
        for iy in range(height):
            for ix in range(width):
                write(BG_ID_WINDOW, x + ix, y + iy, next(values))

    @staticmethod
    def _map_address(bg_id: int, x: int, y: int) -> int:
        x &= 0xFF
        y &= 0xFF
        if bg_id:
            return WINDOW_MAP + (y << 6) + (x << 1)
        return BG_MAP + (y << 6) + ((x & 0x1F) << 1) + ((x & 0x20) << 6)

    def set_bg_tile(self, bg_id: int, x: int, y: int, tile: int) -> None:
        address = self._map_address(bg_id, x, y)
        self._write16(address, (self._read16(address) & 0xFC00) | (tile & 0x00FF))

    def set_bg_attr(self, bg_id: int, x: int, y: int, attr: int) -> None:
        address = self._map_address(bg_id, x, y)
        value = ((self._read16(address) & 0x03FF)
                 | ((attr & 0x07) << 12)
                 | (0x0400 if attr & S_FLIPX else 0)
                 | (0x0800 if attr & S_FLIPY else 0))
        self._write16(address, value)

    def set_window_pos(self, x: int, y: int) -> None:
        """Move the window layer; positions below the screen hide it."""
        self.win_x = x
        self.win_y = y
        if y > MAX_WND_POS_Y:
            self.dispcnt &= ~DCNT_WIN0 & 0xFFFF
            return
        win_x_offset = self.bg_x_offset + ((self.viewport_width - WINDOW_WIDTH) >> 1)
        win_y_offset = self.bg_y_offset + (self.viewport_height - WINDOW_HEIGHT)
        self.win0 = (
            (win_x_offset + x - 7) & 0xFF,
            (win_x_offset + WINDOW_WIDTH) & 0xFF,
            (win_y_offset + y) & 0xFF,
            (win_y_offset + WINDOW_HEIGHT) & 0xFF,
        )
        self.bg1_hofs = -(x - 7 + win_x_offset) & 0xFFFF
        self.bg1_vofs = -(y + win_y_offset) & 0xFFFF
        self.dispcnt |= DCNT_WIN0

    def update_viewport_size(self, width: int, height: int) -> None:
        """Centre a viewport of the given size, capped at the screen size."""
        hofs = self._shadow_hofs + self.bg_x_offset
        vofs = self._shadow_vofs + self.bg_y_offset
        width = min(width, self.config.width)
        height = min(height, self.config.height)

        self.bg_x_offset = (LCD_WIDTH - width) >> 1
        self.bg_y_offset = (LCD_HEIGHT - height) >> 1
        self.viewport_width = width
        self.viewport_height = height
        self.win1 = (
            self.bg_x_offset & 0xFF,
            (self.bg_x_offset + width) & 0xFF,
            self.bg_y_offset & 0xFF,
            (self.bg_y_offset + height) & 0xFF,
        )
        self._shadow_hofs = (hofs - self.bg_x_offset) & 0xFFFF
        self._shadow_vofs = (vofs - self.bg_y_offset) & 0xFFFF
        self.bg0_hofs = self._shadow_hofs
        self.bg0_vofs = self._shadow_vofs
        self.set_window_pos(self.win_x, self.win_y)

    def set_bg_scroll(self, x: int, y: int) -> None:
        self._shadow_hofs = (x - self.bg_x_offset) & 0xFFFF
        self._shadow_vofs = (y - self.bg_y_offset) & 0xFFFF
        self.bg0_hofs = self._shadow_hofs
        self.bg0_vofs = self._shadow_vofs

    def fade(self, to_white: bool, level: int, frame: int, frame_ctr: int,
             going_down: bool, smooth: bool) -> None:
        """Set brightness blending for fade level 5 (none) down to 0 (full)."""
        if smooth:
            max_level = 4 * frame_ctr
            if max_level <= 0:
                raise ValueError("frame_ctr must be positive for smooth fades")
            if going_down:
                current = level * frame_ctr - frame
            else:
                current = (level - 1) * frame_ctr + frame
            current = max(0, min(current, max_level))
            self.bldy = 16 - ((current << 4) // max_level)
        else:
            self.bldy = FADE_LEVELS[min(level, 5)]
        if level == 5:
            self.bldcnt = 0
        else:
            self.bldcnt = 0x3F | (0x80 if to_white else 0xC0)

    @staticmethod
    def _palettes(index: int, colors: Sequence[int]) -> list[tuple[int, list[int]]]:
        if len(colors) % 4:
            raise ValueError("palette colours come in groups of four")
        return [(index + i, [c & 0xFFFF for c in colors[4 * i:4 * i + 4]])
                for i in range(len(colors) // 4)]

    def _require_cgb(self) -> None:
        if not self.cgb:
            raise RuntimeError("colour palettes need colour mode")

    def set_bkg_palette(self, index: int, colors: Sequence[int]) -> None:
        """Load background palettes of four colours each starting at ``index``."""
        self._require_cgb()
        for pal, values in self._palettes(index, colors):
            for k, color in enumerate(values):
                self.bg_palette[(pal << 4) | (8 + k)] = color

    def set_sprite_palette(self, index: int, colors: Sequence[int]) -> None:
        """Load sprite palettes of four colours each starting at ``index``."""
        self._require_cgb()
        for pal, values in self._palettes(index, colors):
            for k, color in enumerate(values):
                self.obj_palette[(pal << 4) | k] = color