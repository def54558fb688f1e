import pytest

from gbsa_engine.channels import (
    FREQUENCIES,
    NO_CUT,
    SONG_BASE,
    WAVES,
    NoiseChannel,
    PulseChannel,
    SongCursor,
    SongState,
    WaveChannel,
)
from gbsa_engine.sound import Apu


def _cursor(data):
    return SongCursor(bytes(data), SONG_BASE)


@pytest.mark.parametrize(
    "data",
    [
        [0x85, 0x81, 0x11],
        [0x85, 0x10],
        [0x42, 0x03],
        [0x25],
        [0x00],
    ],
)
def test_skip_channel_consumes_whole_entry(data):
    cursor = _cursor(data)
    cursor.skip_channel()
    assert cursor.address == SONG_BASE + len(data)


def test_read_byte_past_end_raises():
    cursor = _cursor([0x01])
    assert cursor.read_byte() == 0x01
    with pytest.raises(ValueError):
        cursor.read_byte()


def test_pattern_pointer_reads_little_endian_table():
    state = SongState(data=bytes([0x00, 0x50, 0x34, 0x12]), song=SONG_BASE)
    assert state.pattern_pointer(1) == 0x1234
    assert state.pattern_pointer(0) == 0x5000


def test_pattern_pointer_outside_table_raises():
    state = SongState(data=bytes([0x00, 0x50]), song=SONG_BASE)
    with pytest.raises(ValueError):
        state.pattern_pointer(3)


def test_pulse_note_with_volume_triggers():
    apu = Apu()
    channel = PulseChannel(0, apu)
    state = SongState()
    data = [0x80 | 5, 0x50]
    cursor = _cursor(data)
    channel.handle(cursor, state)
    assert cursor.address == SONG_BASE + len(data)
    assert channel.freq == FREQUENCIES[5]
    assert state.arpeggio[0].base_index == 5
    assert apu.regs["NR13"] == FREQUENCIES[5] & 0xFF
    assert apu.regs["NR14"] & 0x80


def test_disabled_channel_only_skips():
    apu = Apu()
    channel = PulseChannel(0, apu)
    state = SongState(channels_enabled=0)
    data = [0x85, 0x81, 0x11]
    cursor = _cursor(data)
    channel.handle(cursor, state)
    assert cursor.address == SONG_BASE + len(data)
    assert channel.freq == 0
    assert all(value == 0 for value in apu.regs.values())


def test_pan_effect_masks_to_channel_bits():
    channel = PulseChannel(1, Apu())
    channel.handle(_cursor([0x40 | 0x00, 0xFF]), SongState())
    assert channel.pan == 0x22


def test_arpeggio_cycles_through_notes():
    channel = PulseChannel(0, Apu())
    state = SongState()
    channel.handle(_cursor([0x80 | 10, 0x80 | 0x01, 0x47]), state)
    assert channel.freq == FREQUENCIES[10]
    assert channel.update_effects(state) is True
    assert channel.freq == FREQUENCIES[10 + 0x4]
    channel.update_effects(state)
    assert channel.freq == FREQUENCIES[10 + 0x7]
    channel.update_effects(state)
    assert channel.freq == FREQUENCIES[10]


def test_sweep_down_below_zero_stops():
    channel = PulseChannel(0, Apu())
    state = SongState()
    channel.handle(_cursor([0x40 | 0x04, 0x85]), state)
    assert channel.arpeggio_enabled == 2
    assert channel.update_effects(state) is False
    assert channel.freq == 0
    assert channel.arpeggio_enabled == 0


def test_sweep_up_out_of_range_disables_channel():
    apu = Apu()
    channel = PulseChannel(0, apu)
    state = SongState()
    channel.handle(_cursor([0x40 | 0x04, 0x01]), state)
    assert channel.update_effects(state) is True
    assert channel.arpeggio_enabled == 0
    assert apu.regs["NR12"] == 0
    assert apu.regs["NR14"] == 0x80


def test_cut_note_at_tick():
    apu = Apu()
    channel = PulseChannel(1, apu)
    state = SongState()
    channel.handle(_cursor([0x40 | 0x02, 3]), state)
    assert channel.cut_note_tick == 3
    state.ticks_elapsed = 3
    channel.update_effects(state)
    assert channel.cut_note_tick == NO_CUT
    assert apu.regs["NR24"] == 0x80


def test_jump_pattern_effect():
    state = SongState(current_step=12)
    NoiseChannel(Apu()).handle(_cursor([0x40 | 0x08, 7]), state)
    assert state.current_pattern == 7
    assert state.current_step == 0
    assert state.update_pattern_pointers is True


def test_jump_position_effect_loads_next_pattern():
    table = bytes([0x00, 0x50, 0x34, 0x12])
    state = SongState(data=table, song=SONG_BASE)
    NoiseChannel(Apu()).handle(_cursor([0x40 | 0x09, 5]), state)
    assert state.current_step == 5
    assert state.current_pattern == 1
    assert state.step_data_ptr == 0x1234
    assert state.update_pattern_pointers is True


def test_jump_position_to_missing_pattern_restarts():
    table = bytes([0x00, 0x50, 0x00, 0x00])
    state = SongState(data=table, song=SONG_BASE)
    NoiseChannel(Apu()).handle(_cursor([0x40 | 0x09, 5]), state)
    assert state.step_data_ptr == 0
    assert state.current_pattern == 0


def test_speed_effect_resets_ticks():
    state = SongState(speed=3, ticks_elapsed=2)
    PulseChannel(0, Apu()).handle(_cursor([0x40 | 0x0A, 6]), state)
    assert state.speed == 6
    assert state.ticks_elapsed == 0


def test_wave_note_loads_waveform():
    apu = Apu()
    channel = WaveChannel(apu)
    channel.handle(_cursor([0x80 | 5, 0x03]), SongState())
    assert bytes(apu.wave_ram) == WAVES[3]
    assert apu.regs["NR34"] & 0x80
    assert channel.freq == FREQUENCIES[5]


def test_wave_instrument_out_of_range_raises():
    with pytest.raises(ValueError):
        WaveChannel(Apu()).handle(_cursor([0x80 | 5, 0x09]), SongState())


def test_note_index_out_of_range_raises():
    with pytest.raises(ValueError):
        PulseChannel(0, Apu()).handle(_cursor([0xFF, 0x00]), SongState())


def test_noise_instrument_takes_high_bit_from_second_byte():
    apu = Apu()
    channel = NoiseChannel(apu)
    channel.handle(_cursor([0x80 | 0x21, 0x40]), SongState())
    assert channel.instr == 0x21 | 0x80
    assert apu.regs["NR43"] == 0x21 | 0x80
    assert apu.regs["NR44"] == 0x80
    assert channel.update_effects(SongState()) is False