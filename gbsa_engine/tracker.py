"""Tracker music player that steps through song patterns and drives the sound unit."""

from __future__ import annotations

from collections.abc import Mapping

from .channels import (
    NO_CUT,
    SONG_BASE,
    NoiseChannel,
    PulseChannel,
    SongCursor,
    SongState,
    WaveChannel,
)
from .sound import Apu

STEPS_PER_PATTERN = 64
CHANNEL_COUNT = 4

GBT_CHAN_1 = 1 << 0
GBT_CHAN_2 = 1 << 1
GBT_CHAN_3 = 1 << 2
GBT_CHAN_4 = 1 << 3


class GbtPlayer:
    """Plays songs stored in banked memory, one call to update() per frame."""

    def __init__(self, banks: Mapping[int, bytes], apu: Apu | None = None,
                 base: int = SONG_BASE) -> None:
        self.banks = banks
        self.apu = apu if apu is not None else Apu()
        self.base = base
        self.playing = False
        self.loop_enabled = False
        self.state = SongState(base=base)
        self.channels = self._new_channels()

    def _new_channels(self) -> tuple:
        return (
            PulseChannel(0, self.apu),
            PulseChannel(1, self.apu),
            WaveChannel(self.apu),
            NoiseChannel(self.apu),
        )

    def play(self, offset: int, bank: int, speed: int) -> None:
        """Start the song whose pattern table is at ``offset`` in ``bank``."""
        if bank not in self.banks:
            raise KeyError(f"unknown bank {bank}")
        self.state = SongState(
            data=bytes(self.banks[bank]),
            song=offset,
            base=self.base,
            speed=speed & 0xFF,
        )
        self.state.step_data_ptr = self.state.pattern_pointer(0)
        self.loop_enabled = False
        self.channels = self._new_channels()
        self.apu.start(True)
        self.playing = True

    def pause(self, unpause: bool) -> None:
        """Resume playback when ``unpause`` is true, pause it otherwise."""
        self.playing = bool(unpause)
        self.apu.pause(not unpause)

    def stop(self) -> None:
        self.playing = False
        self.apu.stop()

    def loop(self, enabled: bool) -> None:
        self.loop_enabled = bool(enabled)

    def enable_channels(self, mask: int) -> None:
        self.state.channels_enabled = mask & 0xFF

    def _update_effects(self) -> None:
        for channel in self.channels:
            if channel.update_effects(self.state):
                channel.refresh(False)

    def _seek_step(self) -> None:
        state = self.state
        cursor = SongCursor(state.data, state.pattern_pointer(state.current_pattern), self.base)
        for _ in range(state.current_step * CHANNEL_COUNT):
            cursor.skip_channel()
        state.step_data_ptr = cursor.address

    def update(self) -> None:
        """Advance playback by one frame."""
        if not self.playing:
            return
        state = self.state

        state.ticks_elapsed = (state.ticks_elapsed + 1) & 0xFF
        if state.ticks_elapsed != state.speed:
            self._update_effects()
            return
        state.ticks_elapsed = 0

        for channel in self.channels:
            if hasattr(channel, "arpeggio_enabled"):
                channel.arpeggio_enabled = 0
            channel.cut_note_tick = NO_CUT

        self._update_effects()

        if state.have_to_stop_next_step:
            self.stop()
            state.have_to_stop_next_step = False
            return

        if state.update_pattern_pointers:
            state.update_pattern_pointers = False
            state.have_to_stop_next_step = False
            self._seek_step()

        cursor = SongCursor(state.data, state.step_data_ptr, self.base)
        start = cursor.address
        for channel in self.channels:
            channel.handle(cursor, state)
        pan = 0
        for channel in self.channels:
            pan |= channel.pan
        self.apu.set_pan(pan)
        state.step_data_ptr += cursor.address - start

        if state.update_pattern_pointers:
            return
        state.current_step = (state.current_step + 1) & 0xFF
        if state.current_step != STEPS_PER_PATTERN:
            return
        state.current_step = 0
        state.current_pattern = (state.current_pattern + 1) & 0xFF
        state.step_data_ptr = state.pattern_pointer(state.current_pattern)
        if state.step_data_ptr == 0:
            if self.loop_enabled:
                state.current_pattern = 0
                state.step_data_ptr = state.pattern_pointer(0)
            else:
                state.have_to_stop_next_step = True