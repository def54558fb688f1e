"""Channel state and pattern-step decoding for the tracker music player."""

from __future__ import annotations

from dataclasses import dataclass, field

from .sound import Apu, SoundMode

SONG_BASE = 0x4000
NO_CUT = 0xFF

FREQUENCIES = (
    44, 156, 262, 363, 457, 547, 631, 710, 786, 854, 923, 986,
    1046, 1102, 1155, 1205, 1253, 1297, 1339, 1379, 1417, 1452, 1486, 1517,
    1546, 1575, 1602, 1627, 1650, 1673, 1694, 1714, 1732, 1750, 1767, 1783,
    1798, 1812, 1825, 1837, 1849, 1860, 1871, 1881, 1890, 1899, 1907, 1915,
    1923, 1930, 1936, 1943, 1949, 1954, 1959, 1964, 1969, 1974, 1978, 1982,
    1985, 1988, 1992, 1995, 1998, 2001, 2004, 2006, 2009, 2011, 2013, 2015,
)

WAVES = (
    bytes((0xA5, 0xD7, 0xC9, 0xE1, 0xBC, 0x9A, 0x76, 0x31, 0x0C, 0xBA, 0xDE, 0x60, 0x1B, 0xCA, 0x03, 0x93)),
    bytes((0xF0, 0xE1, 0xD2, 0xC3, 0xB4, 0xA5, 0x96, 0x87, 0x78, 0x69, 0x5A, 0x4B, 0x3C, 0x2D, 0x1E, 0x0F)),
    bytes((0xFD, 0xEC, 0xDB, 0xCA, 0xB9, 0xA8, 0x97, 0x86, 0x79, 0x68, 0x57, 0x46, 0x35, 0x24, 0x13, 0x02)),
    bytes((0xDE, 0xFE, 0xDC, 0xBA, 0x9A, 0xA9, 0x87, 0x77, 0x88, 0x87, 0x65, 0x56, 0x54, 0x32, 0x10, 0x12)),
    bytes((0xAB, 0xCD, 0xEF, 0xED, 0xCB, 0xA0, 0x12, 0x3E, 0xDC, 0xBA, 0xBC, 0xDE, 0xFE, 0xDC, 0x32, 0x10)),
    bytes((0xFF, 0xEE, 0xDD, 0xCC, 0xBB, 0xAA, 0x99, 0x88, 0x77, 0x66, 0x55, 0x44, 0x33, 0x22, 0x11, 0x00)),
    bytes((0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00)),
    bytes((0x79, 0xBC, 0xDE, 0xEF, 0xFF, 0xEE, 0xDC, 0xB9, 0x75, 0x43, 0x21, 0x10, 0x00, 0x11, 0x23, 0x45)),
)


def _frequency(note: int) -> int:
    if not 0 <= note < len(FREQUENCIES):
        raise ValueError(f"note index {note} out of range")
    return FREQUENCIES[note]


@dataclass
class SongCursor:
    """Reads pattern bytes addressed the way song pointers are stored."""

    data: bytes
    address: int
    base: int = SONG_BASE

    def read_byte(self) -> int:
        offset = self.address - self.base
        if not 0 <= offset < len(self.data):
            raise ValueError(f"song data address {self.address:#06x} out of range")
        self.address += 1
        return self.data[offset]

    def skip_channel(self) -> None:
        """Advance past one channel's entry in a step without decoding it."""
        first = self.read_byte()
        if first & 0x80:
            if self.read_byte() & 0x80:
                self.read_byte()
        elif first & 0x40:
            self.read_byte()


@dataclass
class _ArpeggioIndex:
    base_index: int = 0
    base_index_x: int = 0
    base_index_y: int = 0


@dataclass
class SongState:
    """Playback position and song-wide settings shared by all channels."""

    data: bytes = b""
    song: int = 0
    base: int = SONG_BASE
    speed: int = 0
    ticks_elapsed: int = 0
    current_step: int = 0
    current_pattern: int = 0
    step_data_ptr: int = 0
    have_to_stop_next_step: bool = False
    update_pattern_pointers: bool = False
    channels_enabled: int = 0x0F
    arpeggio: list = field(default_factory=lambda: [_ArpeggioIndex() for _ in range(3)])

    def pattern_pointer(self, pattern: int) -> int:
        """Return the step-data address of a pattern from the song's table."""
        offset = self.song - self.base + ((pattern & 0xFF) << 1)
        if not 0 <= offset < len(self.data) - 1:
            raise ValueError(f"pattern {pattern} outside song table")
        return self.data[offset] | (self.data[offset + 1] << 8)


class _Channel:
    def __init__(self, index: int, apu: Apu, volume: int) -> None:
        self.index = index
        self.apu = apu
        self.pan = 0x11 << index
        self.vol = volume
        self.instr = 0
        self.cut_note_tick = NO_CUT

    def _enabled(self, cursor: SongCursor, state: SongState) -> bool:
        if state.channels_enabled & (1 << self.index):
            return True
        cursor.skip_channel()
        return False

    def _disable(self) -> None:
        raise NotImplementedError

    def _check_cut(self, state: SongState) -> None:
        if state.ticks_elapsed == self.cut_note_tick:
            self.cut_note_tick = NO_CUT
            self._disable()

    def _cut(self, args: int) -> None:
        self.cut_note_tick = args
        if args == 0:
            self._disable()

    def _set_volume_nibble(self, ch: int) -> None:
        self.vol = ((self.vol & 0x0F) | (ch << 4)) & 0xFF

    @staticmethod
    def _common_effect(effect: int, args: int, state: SongState) -> None:
        match effect:
            case 8:  # jump to pattern
                state.current_pattern = args
                state.current_step = 0
                state.have_to_stop_next_step = False
                state.update_pattern_pointers = True
            case 9:  # jump to step in next pattern
                state.current_step = args
                state.current_pattern = (state.current_pattern + 1) & 0xFF
                state.step_data_ptr = state.pattern_pointer(state.current_pattern)
                if state.step_data_ptr == 0:
                    state.current_pattern = 0
                state.update_pattern_pointers = True
            case 10:  # speed
                state.speed = args
                state.ticks_elapsed = 0


class _TonalChannel(_Channel):
    def __init__(self, index: int, apu: Apu, volume: int) -> None:
        super().__init__(index, apu, volume)
        self.freq = 0
        self.arpeggio_enabled = 0  # 0 off, 1 arpeggio, 2 sweep
        self.arpeggio_tick = 0
        self.sweep = 0

    def _set_note(self, note: int, state: SongState) -> None:
        state.arpeggio[self.index].base_index = note
        self.freq = _frequency(note)

    def _start_arpeggio(self, args: int, state: SongState) -> None:
        # The arpeggio effect always retargets the first channel's note indices.
        idx = state.arpeggio[0]
        idx.base_index_x = (idx.base_index + (args >> 4)) & 0xFF
        idx.base_index_y = (idx.base_index + (args & 0x0F)) & 0xFF
        self.arpeggio_enabled = 1
        self.arpeggio_tick = 1

    def _tone_effects(self, state: SongState) -> bool:
        if self.arpeggio_enabled & 0xFE:
            step = self.sweep & 0x7F
            if self.sweep & 0x80:
                freq = self.freq - step
                if freq < 0:
                    self.freq = 0
                    self.arpeggio_enabled = 0
                    return False
                self.freq = freq
                return True
            self.freq = (self.freq + step) & 0xFFFF
            if (self.freq & 0x0700) == 0:
                self.arpeggio_enabled = 0
                self._disable()
            return True
        if self.arpeggio_enabled:
            idx = state.arpeggio[self.index]
            if self.arpeggio_tick == 0:
                self.freq = _frequency(idx.base_index)
                self.arpeggio_tick = 1
            elif self.arpeggio_tick == 1:
                self.freq = _frequency(idx.base_index_x)
                self.arpeggio_tick = 2
            else:
                self.freq = _frequency(idx.base_index_y)
                self.arpeggio_tick = 0
            return True
        return False

    def _tone_effect(self, effect: int, args: int, state: SongState) -> bool:
        match effect:
            case 0:
                self.pan = args & (0x11 << self.index)
            case 1:
                self._start_arpeggio(args, state)
                return True
            case 2:
                self._cut(args)
            case 4:
                self.sweep = args
                self.arpeggio_enabled = 2
            case _:
                self._common_effect(effect, args, state)
        return False


class PulseChannel(_TonalChannel):
    """One of the two square-wave channels (index 0 or 1)."""

    def __init__(self, index: int, apu: Apu) -> None:
        if index not in (0, 1):
            raise ValueError("pulse channel index must be 0 or 1")
        super().__init__(index, apu, 0xF0)
        self._write = apu.channel1_update if index == 0 else apu.channel2_update

    def _disable(self) -> None:
        self._write(SoundMode.DISABLE, 0, 0, 0)

    def _set_effect(self, effect: int, cursor: SongCursor, state: SongState) -> bool:
        args = cursor.read_byte()
        if effect == 15:
            self.vol = args
            return False
        return self._tone_effect(effect, args, state)

    def handle(self, cursor: SongCursor, state: SongState) -> None:
        """Decode this channel's entry of the current step."""
        if not self._enabled(cursor, state):
            return
        ch = cursor.read_byte()
        if ch & 0x80:
            note = ch & 0x7F
            ch = cursor.read_byte()
            self._set_note(note, state)
            self.instr = (ch & 0x30) << 2
            if ch & 0x80:
                self._set_effect(ch & 0x0F, cursor, state)
            else:
                self._set_volume_nibble(ch)
            self.refresh(True)
        elif ch & 0x40:
            self.instr = (ch & 0x30) << 2
            self._set_effect(ch & 0x0F, cursor, state)
            self.refresh(False)
        elif ch & 0x20:
            self._set_volume_nibble(ch)
            self.refresh(True)

    def update_effects(self, state: SongState) -> bool:
        """Run per-tick effects; True when registers need refreshing."""
        self._check_cut(state)
        return self._tone_effects(state)

    def refresh(self, trigger: bool) -> None:
        mode = SoundMode.TRIGGER if trigger else SoundMode.UPDATE
        self._write(mode, self.instr, self.vol, self.freq)


class WaveChannel(_TonalChannel):
    """The programmable-waveform channel."""

    def __init__(self, apu: Apu, index: int = 2) -> None:
        super().__init__(index, apu, 0x20)

    def _disable(self) -> None:
        self.apu.channel3_update(SoundMode.DISABLE, 0, 0)

    def _set_effect(self, effect: int, cursor: SongCursor, state: SongState) -> bool:
        return self._tone_effect(effect, cursor.read_byte(), state)

    def handle(self, cursor: SongCursor, state: SongState) -> None:
        """Decode this channel's entry of the current step."""
        if not self._enabled(cursor, state):
            return
        ch = cursor.read_byte()
        if ch & 0x80:
            note = ch & 0x7F
            ch = cursor.read_byte()
            self._set_note(note, state)
            self.instr = ch & 0x0F
            if ch & 0x80:
                self._set_effect((ch & 0x70) >> 4, cursor, state)
            else:
                self.vol = (ch & 0x30) << 1
            self.refresh(True)
        elif ch & 0x40:
            if self._set_effect(ch & 0x0F, cursor, state):
                self.refresh(False)
        elif ch & 0x20:
            self.vol = ((ch << 4) | (ch >> 4)) & 0xFF
            self.refresh(True)

    def update_effects(self, state: SongState) -> bool:
        """Run per-tick effects; True when registers need refreshing."""
        self._check_cut(state)
        return self._tone_effects(state)

    def refresh(self, trigger: bool) -> None:
        if not trigger:
            self.apu.channel3_update(SoundMode.UPDATE, self.vol, self.freq)
            return
        if not 0 <= self.instr < len(WAVES):
            raise ValueError(f"wave instrument {self.instr} out of range")
        self.apu.channel3_update(SoundMode.DISABLE, 0, 0)
        self.apu.channel3_load_instrument(WAVES[self.instr])
        self.apu.channel3_update(SoundMode.TRIGGER, self.vol, self.freq)


class NoiseChannel(_Channel):
    """The noise channel."""

    def __init__(self, apu: Apu, index: int = 3) -> None:
        super().__init__(index, apu, 0xF0)

    def _disable(self) -> None:
        self.apu.channel4_update(SoundMode.DISABLE, 0, 0)

    def _set_effect(self, effect: int, cursor: SongCursor, state: SongState) -> bool:
        args = cursor.read_byte()
        match effect:
            case 0:
                self.pan = args & (0x11 << self.index)
            case 2:
                self._cut(args)
            case 15:
                self.vol = args
            case _:
                self._common_effect(effect, args, state)
        return False

    def handle(self, cursor: SongCursor, state: SongState) -> None:
        """Decode this channel's entry of the current step."""
        if not self._enabled(cursor, state):
            return
        ch = cursor.read_byte()
        if ch & 0x80:
            raw = ch & 0x7F
            ch = cursor.read_byte()
            self.instr = (raw | ((ch << 1) & 0x80)) & 0xFF
            if ch & 0x80:
                self._set_effect(ch & 0x0F, cursor, state)
            else:
                self._set_volume_nibble(ch)
            self.refresh(True)
        elif ch & 0x40:
            if self._set_effect(ch & 0x0F, cursor, state):
                self.refresh(True)
        elif ch & 0x20:
            self._set_volume_nibble(ch)
            self.refresh(True)

    def update_effects(self, state: SongState) -> bool:
        """Handle note cuts; the noise channel has no per-tick refresh."""
        self._check_cut(state)
        return False

    def refresh(self, trigger: bool) -> None:
        """Write the channel registers; the noise channel always restarts."""
        self.apu.channel4_update(SoundMode.UPDATE, self.instr, self.vol)