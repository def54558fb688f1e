# gbsa_engine

The core of a small 2D tile-and-sprite game engine, modelled on an 8-bit
handheld. Every part is plain in-memory state that you drive by calling
methods and then inspect, so nothing needs real hardware.

## Modules

- `gbsa_engine.sound`
  - `Apu` models the four-channel sound unit as a dict of NRxx registers (`regs`) and a 16-byte `wave_ram`.
  - Its methods are `start`, `pause`, `stop`, `channel1_update` to `channel4_update`, `channel3_load_instrument` and `set_pan`. The `pan` property reads back the panning.
  - `SoundMode` selects `DISABLE`, `UPDATE`, `TRIGGER` or `CH4_BEEP`.
- `gbsa_engine.channels`
  - `SongCursor` reads song bytes by address. By default the addresses start at `0x4000`.
  - `SongState` holds the playback position and looks up pattern pointers.
  - `PulseChannel`, `WaveChannel` and `NoiseChannel` decode one channel's entry of a pattern step. They apply effects such as pan, arpeggio, note cut, sweep, pattern jumps and speed, and they write the result to an `Apu`.
- `gbsa_engine.tracker`
  - `GbtPlayer(banks, apu=None)` plays a song whose pattern table sits at an address inside one of the given byte banks.
  - It provides `play(offset, bank, speed)`, `pause`, `stop`, `loop` and `enable_channels`.
  - Call `update()` once per frame.
  - When the song ends, playback stops unless looping is on.
- `gbsa_engine.camera`
  - `Camera.update(target, image_width, image_height)` follows a `Pos` within a deadzone when the lock flag (`0x10`) is set in `settings`.
  - It always clamps the camera to the map.
  - `u_less_than` is the 16-bit wrap-around comparison it uses.
- `gbsa_engine.text`
  - `get_token` parses a numeric token.
  - `expand_text` replaces the `$n$`, `#n#` and `!Sn!` codes with their values.
  - `layout_text` places the printable characters as `Glyph` items and handles word wrap, line breaks and speed codes.
  - `Menu` moves a choice cursor and returns the value to store for the chosen option.
  - `WindowMover` steps the dialogue window towards its destination.
- `gbsa_engine.video`
  - `Video` holds VRAM, the OAM sprite entries, the palettes, window and scroll offsets, and fade blending on a 240x160 display.
  - `ScreenConfig.for_mode(0|1|2)` gives the screen sizes 160x144, 224x144 and 240x160.
  - `expand_tile_row` converts one 2bpp tile row to 4bpp.
  - `decode_joypad` maps raw key bits to joypad bits.
- `gbsa_engine.actors`
  - `Actor` and `SpriteType` describe an actor.
  - `actor_tiles` picks an actor's sprite tiles and flip from its direction.
  - `update_actors(...)` does the per-frame work for every active actor. It animates the actor, redraws its two sprites and places them. It also drops actors that are off screen and returns their indices.

## Installing

```
pip install .
pip install ".[test]"
```

## Examples

```python
from gbsa_engine.camera import Camera, Pos

camera = Camera(settings=0x10)          # lock onto the target
camera.update(Pos(400, 300), image_width=640, image_height=480)
print(camera.pos)
```

```python
from gbsa_engine.text import Menu, expand_text

expand_text("Score: $0$", [42])         # 'Score: 42'

menu = Menu(num_options=3)
menu.move("down")                       # 1
menu.confirm()                          # 2
```

```python
from gbsa_engine.video import KEY_A, decode_joypad, expand_tile_row

decode_joypad(0xFFFF ^ KEY_A)           # 0x10, the A button
expand_tile_row(0xFF, 0x00)             # 0x11111111
```

## What it does not do

The package produces register values and memory contents only. It does not
play sound through a speaker. It does not draw to a screen or a window, and
it does not read a real controller. It has no game loop, command-line program,
scene or asset loader, script runner, collision maps or save storage. To build
a game on it, you supply those parts yourself.

## Tests

Run the tests with `pytest`.