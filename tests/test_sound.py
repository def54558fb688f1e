import pytest

from gbsa_engine.sound import Apu, SoundMode


def test_start_with_reinit_clears_channels_and_sets_volume():
    apu = Apu()
    apu.channel1_update(SoundMode.TRIGGER, 0x40, 0xF0, 0x0123)
    apu.start(True)
    assert apu.regs["NR52"] == 0x80
    assert apu.regs["NR50"] == 0x77
    assert apu.regs["NR12"] == 0
    assert apu.regs["NR11"] == 0


def test_start_without_reinit_keeps_channel_registers():
    apu = Apu()
    apu.channel1_update(SoundMode.TRIGGER, 0x40, 0xF0, 0x0123)
    apu.start(False)
    assert apu.regs["NR11"] == 0x40
    assert apu.regs["NR50"] == 0x77


def test_pause_and_resume():
    apu = Apu()
    apu.start(True)
    apu.pause(True)
    assert apu.regs["NR50"] == 0
    apu.pause(False)
    assert apu.regs["NR50"] == 0x77


def test_stop_silences_everything():
    apu = Apu()
    apu.start(True)
    apu.set_pan(0xFF)
    apu.stop()
    assert (apu.regs["NR50"], apu.regs["NR51"], apu.regs["NR52"]) == (0, 0, 0)


def test_channel1_trigger_writes_frequency_and_volume():
    apu = Apu()
    apu.channel1_update(SoundMode.TRIGGER, 0x80, 0xA0, 0x0123)
    assert apu.regs["NR12"] == 0xA0
    assert apu.regs["NR11"] == 0x80
    assert apu.regs["NR13"] == 0x23
    assert apu.regs["NR14"] == 0x01 | 0x80


def test_channel2_update_does_not_retrigger():
    apu = Apu()
    apu.channel2_update(SoundMode.UPDATE, 0x40, 0xF0, 0x0123)
    assert apu.regs["NR24"] == 0x01
    assert apu.regs["NR22"] == 0
    assert apu.regs["NR23"] == 0x23


def test_channel1_disable():
    apu = Apu()
    apu.channel1_update(SoundMode.TRIGGER, 0x80, 0xA0, 0x0123)
    apu.channel1_update(SoundMode.DISABLE, 0, 0, 0)
    assert apu.regs["NR12"] == 0
    assert apu.regs["NR14"] == 0x80


def test_load_instrument_copies_wave_and_toggles_bank_bit():
    apu = Apu()
    wave = bytes(range(16))
    before = apu.regs["NR30"]
    apu.channel3_load_instrument(wave)
    assert bytes(apu.wave_ram) == wave
    assert apu.regs["NR30"] != before
    apu.channel3_load_instrument(wave)
    assert apu.regs["NR30"] == before


def test_load_instrument_rejects_wrong_length():
    with pytest.raises(ValueError):
        Apu().channel3_load_instrument(b"\x00\x01")


def test_channel3_disable_keeps_only_bank_bit():
    apu = Apu()
    apu.channel3_load_instrument(bytes(16))
    apu.channel3_update(SoundMode.TRIGGER, 0x20, 0x0456)
    assert apu.regs["NR30"] & 0x80
    apu.channel3_update(SoundMode.DISABLE, 0, 0)
    assert apu.regs["NR30"] == 0x40
    assert apu.regs["NR32"] == 0
    assert apu.regs["NR34"] == 0x80


def test_channel4_beep_and_update():
    apu = Apu()
    apu.channel4_update(SoundMode.CH4_BEEP, 0x21, 0xF0)
    assert apu.regs["NR44"] == 0x80 | 0x40
    assert apu.regs["NR41"] == 0x01
    apu.channel4_update(SoundMode.UPDATE, 0x21, 0xF0)
    assert apu.regs["NR44"] == 0x80
    assert apu.regs["NR43"] == 0x21


def test_pan_round_trip():
    apu = Apu()
    apu.set_pan(0x5A)
    assert apu.pan == 0x5A