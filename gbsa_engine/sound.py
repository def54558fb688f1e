"""Emulated four-channel sound unit driven through its NRxx registers."""

from __future__ import annotations

from enum import IntEnum

REGISTER_NAMES = (
    "NR10", "NR11", "NR12", "NR13", "NR14",
    "NR21", "NR22", "NR23", "NR24",
    "NR30", "NR31", "NR32", "NR33", "NR34",
    "NR41", "NR42", "NR43", "NR44",
    "NR50", "NR51", "NR52",
)

_CHANNEL_REGISTERS = tuple(name for name in REGISTER_NAMES if name[2] in "1234")

WAVE_RAM_SIZE = 16
MASTER_VOLUME_FULL = 0x77


class SoundMode(IntEnum):
    """How a channel update call affects the channel."""

    DISABLE = 0
    UPDATE = 1
    TRIGGER = 2
    CH4_BEEP = 3


class Apu:
    """Register-level model of the sound hardware."""

    def __init__(self) -> None:
        self.regs: dict[str, int] = {name: 0 for name in REGISTER_NAMES}
        self.wave_ram = bytearray(WAVE_RAM_SIZE)

    def _set(self, name: str, value: int) -> None:
        self.regs[name] = value & 0xFF

    @property
    def pan(self) -> int:
        """Current channel panning (NR51)."""
        return self.regs["NR51"]

    def set_pan(self, pan: int) -> None:
        self._set("NR51", pan)

    def start(self, reinit: bool) -> None:
        self._set("NR52", 0x80)
        if reinit:
            self._set("NR50", 0)
            self._set("NR51", 0)
            for name in _CHANNEL_REGISTERS:
                self._set(name, 0)
        self._set("NR50", MASTER_VOLUME_FULL)

    def pause(self, paused: bool) -> None:
        self._set("NR50", 0 if paused else MASTER_VOLUME_FULL)

    def stop(self) -> None:
        self._set("NR50", 0)
        self._set("NR51", 0)
        self._set("NR52", 0)

    def _pulse_update(self, prefix: str, sweep: bool, mode: int,
                      instr: int, vol: int, freq: int) -> None:
        if mode == SoundMode.UPDATE:
            if sweep:
                self._set("NR10", 0)
            self._set(prefix + "1", instr)
            self._set(prefix + "3", freq & 0xFF)
            self._set(prefix + "4", freq >> 8)
        elif mode == SoundMode.TRIGGER:
            if sweep:
                self._set("NR10", 0)
            self._set(prefix + "1", instr)
            self._set(prefix + "2", vol)
            self._set(prefix + "3", freq & 0xFF)
            self._set(prefix + "4", (freq >> 8) | 0x80)
        elif mode == SoundMode.DISABLE:
            self._set(prefix + "2", 0)
            self._set(prefix + "4", 0x80)

    def channel1_update(self, mode: int, instr: int, vol: int, freq: int) -> None:
        self._pulse_update("NR1", True, mode, instr, vol, freq)

    def channel2_update(self, mode: int, instr: int, vol: int, freq: int) -> None:
        self._pulse_update("NR2", False, mode, instr, vol, freq)

    def channel3_load_instrument(self, wave: bytes) -> None:
        """Copy a 16-byte waveform into wave RAM and flip the wave bank bit."""
        if len(wave) != WAVE_RAM_SIZE:
            raise ValueError(f"waveform must be {WAVE_RAM_SIZE} bytes, got {len(wave)}")
        self.wave_ram[:] = bytes(wave)
        self._set("NR30", self.regs["NR30"] ^ 0x40)

    def channel3_update(self, mode: int, vol: int, freq: int) -> None:
        if mode == SoundMode.UPDATE:
            self._set("NR33", freq & 0xFF)
            self._set("NR34", freq >> 8)
        elif mode == SoundMode.TRIGGER:
            self._set("NR30", self.regs["NR30"] | 0x80)
            self._set("NR31", 0)
            self._set("NR32", vol)
            self._set("NR33", freq & 0xFF)
            self._set("NR34", (freq >> 8) | 0x80)
        elif mode == SoundMode.DISABLE:
            self._set("NR30", self.regs["NR30"] & 0x40)
            self._set("NR32", 0)
            self._set("NR34", 0x80)

    def channel4_update(self, mode: int, instr: int, vol: int) -> None:
        if mode in (SoundMode.UPDATE, SoundMode.TRIGGER):
            self._set("NR41", 0)
            self._set("NR42", vol)
            self._set("NR43", instr)
            self._set("NR44", 0x80)
        elif mode == SoundMode.CH4_BEEP:
            self._set("NR41", 0x01)
            self._set("NR42", vol)
            self._set("NR43", instr)
            self._set("NR44", 0x80 | 0x40)
        elif mode == SoundMode.DISABLE:
            self._set("NR42", 0)
            self._set("NR44", 0x80)