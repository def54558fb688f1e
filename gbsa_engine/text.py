"""Dialogue text expansion, glyph layout, menus and window movement."""

from __future__ import annotations

from dataclasses import dataclass

MENU_OPEN_Y = 112
WIN_LEFT_X = 7
WINDOW_TILE_WIDTH = 20
WINDOW_TILE_HEIGHT = 18
MENU_CLOSED_Y = (WINDOW_TILE_HEIGHT << 3)
TEXT_BUFFER_START = 0xCC
MENU_LAYOUT_INITIAL_X = 88
MENU_CANCEL_ON_LAST_OPTION = 0x01
MENU_CANCEL_ON_B_PRESSED = 0x02

TEXT_DRAW_SPEEDS = (0x0, 0x1, 0x3, 0x7, 0xF, 0x1F)
MAX_TEXT_STEPS = 80
SPEED_CODE_BASE = 0x10
WINDOW_SPEED_CLOSING = 0xFF

_LINE_WIDTH = WINDOW_TILE_WIDTH - 2
_MENU_DIRECTIONS = ("up", "down", "left", "right")


def _ubyte_lt(a: int, b: int) -> bool:
    return bool((a - b) & 0x80)


def _ubyte_gt(a: int, b: int) -> bool:
    return bool((b - a) & 0x80)


def get_token(text: str, term: str) -> tuple[int, int] | None:
    """Parse digits up to ``term``.

    Returns ``(value, consumed)`` where ``consumed`` counts the digits and the
    terminator, or None when there are no digits, five or more digits, a
    non-digit character, or no terminator.
    """
    value = 0
    for pos, char in enumerate(text):
        if "0" <= char <= "9":
            value = (value * 10 + (ord(char) - ord("0"))) & 0xFFFF
        elif char == term:
            if pos <= 0 or pos >= 5:
                return None
            return value, pos + 1
        else:
            return None
    return None


def expand_text(text: str, variables) -> str:
    """Replace ``$n$``, ``#n#`` and ``!Sn!`` codes with their expansions.

    ``$n$`` becomes the decimal value of variable n, ``#n#`` the character
    with code ``value + 0x20``, and ``!Sn!`` a text-speed control character.
    At most 80 source steps are processed.
    """
    out: list[str] = []
    src = 0
    for _ in range(MAX_TEXT_STEPS):
        if src >= len(text):
            break
        char = text[src]
        if char == "$":
            parsed = get_token(text[src + 1:], "$")
            if parsed:
                index, length = parsed
                out.append(str(variables[index]))
                src += length + 1
                continue
        elif char == "#":
            parsed = get_token(text[src + 1:], "#")
            if parsed:
                index, length = parsed
                out.append(chr((variables[index] + 0x20) & 0xFF))
                src += length + 1
                continue
        elif char == "!" and text[src + 1:src + 2] == "S":
            parsed = get_token(text[src + 2:], "!")
            if parsed:
                value, length = parsed
                out.append(chr((value + SPEED_CODE_BASE) & 0xFF))
                src += length + 2
                continue
        out.append(char)
        src += 1
    return "".join(out)


@dataclass(frozen=True)
class Glyph:
    """A character placed in the window map.

    ``speed`` is the draw-speed mask set by the latest speed code before this
    character, or None if no speed code preceded it.
    """

    char: str
    tile: int
    x: int
    y: int
    speed: int | None = None


def layout_text(text: str, num_lines: int, avatar_enabled: bool,
                menu_enabled: bool) -> list[Glyph]:
    """Place every printable character of expanded text in the window."""
    if num_lines <= 0:
        raise ValueError("num_lines must be positive")
    codes = [ord(c) & 0xFF for c in text]
    size = len(codes)
    avatar = 1 if avatar_enabled else 0
    menu = 1 if menu_enabled else 0

    glyphs: list[Glyph] = []
    x = y = count = tiles = 0
    speed: int | None = None
    while count < size:
        code = codes[count]

        remaining = (_LINE_WIDTH - x) & 0xFF
        word_len = 0
        for following in codes[count:]:
            if following < 0x20:
                break
            word_len += 1
        word_len &= 0xFF
        if _ubyte_lt(remaining, word_len) and _ubyte_lt(word_len, _LINE_WIDTH):
            x = 0
            y = (y + 1) & 0xFF

        if code >= 0x20:
            tile = (TEXT_BUFFER_START + tiles + avatar * 4) & 0xFF
            column = (x + 1 + avatar * 2 + menu + (9 if y >= num_lines else 0)) & 31
            row = ((y % num_lines) + 1) & 31
            glyphs.append(Glyph(text[count], tile, column, row, speed))
            tiles += 1

        if SPEED_CODE_BASE <= code < SPEED_CODE_BASE + len(TEXT_DRAW_SPEEDS):
            speed = TEXT_DRAW_SPEEDS[code - SPEED_CODE_BASE]
            x = (x - 1) & 0xFF

        count += 1
        x = (x + 1) & 0xFF
        if count < size and codes[count] == 0x0A:
            x = 0
            y = (y + 1) & 0xFF
            count += 1
        elif _ubyte_gt(x, WINDOW_TILE_WIDTH - 3):
            x = 0
            y = (y + 1) & 0xFF
    return glyphs


@dataclass
class Menu:
    """Cursor state of an on-screen choice menu."""

    num_options: int
    layout: int = 0
    cancel_on_last_option: bool = False
    cancel_on_b: bool = False
    index: int = 0

    def __post_init__(self) -> None:
        if self.num_options < 1:
            raise ValueError("a menu needs at least one option")

    def move(self, direction: str) -> int:
        """Move the cursor ('up', 'down', 'left' or 'right'); return the index."""
        last = self.num_options - 1
        match direction:
            case "up":
                self.index = max(self.index - 1, 0)
            case "down":
                self.index = min(self.index + 1, last)
            case "left":
                self.index = max(self.index - 4, 0) if self.layout == 0 else 0
            case "right":
                self.index = min(self.index + 4, last) if self.layout == 0 else last
            case _:
                raise ValueError(f"direction must be one of {_MENU_DIRECTIONS}")
        return self.index

    def confirm(self) -> int:
        """Value to store for the selected option; 0 means cancelled."""
        if self.cancel_on_last_option and self.index + 1 == self.num_options:
            return 0
        return self.index + 1

    def cancel(self) -> int | None:
        """Value to store when B is pressed, or None if B does not cancel."""
        return 0 if self.cancel_on_b else None


@dataclass
class WindowMover:
    """Animates the dialogue window towards its destination."""

    pos_x: int = 0
    pos_y: int = MENU_CLOSED_Y
    dest_x: int = 0
    dest_y: int = MENU_CLOSED_Y
    speed: int = 0

    @property
    def at_dest(self) -> bool:
        return self.pos_x == self.dest_x and self.pos_y == self.dest_y

    @property
    def closed(self) -> bool:
        return self.pos_y == MENU_CLOSED_Y and self.speed != WINDOW_SPEED_CLOSING

    def step(self, game_time: int) -> bool:
        """Advance one frame; True when the frame was processed, not skipped."""
        if self.speed == 5 and (game_time & 0x7) != 0:
            return False
        if self.speed == 4 and (game_time & 0x3) != 0:
            return False
        if self.speed == 3 and (game_time & 0x1) != 0:
            return False
        if self.speed == WINDOW_SPEED_CLOSING:
            self.speed = 0
            return False

        interval = 2 if self.speed == 1 else 1
        self.pos_x = self._approach(self.pos_x, self.dest_x, interval)
        self.pos_y = self._approach(self.pos_y, self.dest_y, interval)
        return True

    @staticmethod
    def _approach(pos: int, dest: int, interval: int) -> int:
        if pos == dest:
            return pos
        if pos < dest:
            return (pos + interval) & 0xFF
        return (pos - interval) & 0xFF