# chip8emu

A CHIP-8 interpreter. It runs CHIP-8 ROM images in a pygame window and
records how long each instruction takes to execute.

## Installing

```
pip install .
```

To run the tests, install the `test` extra and run pytest:

```
pip install .[test]
pytest
```

## Running a ROM

```
chip8emu <Scale> <Delay> <ROM>
```

- `Scale`: how many window pixels each CHIP-8 pixel covers. The display is
  64×32, so a scale of 10 opens a 640×320 window.
- `Delay`: the least number of milliseconds between two CPU cycles. One
  instruction runs per cycle, and the delay and sound timers count down by
  one on every cycle.
- `ROM`: path of the ROM image. It is loaded at address `0x200`. If the file
  cannot be opened, a message is printed to stderr and the emulator runs with
  empty program memory.

Missing or non-integer arguments print a usage line and exit with status 1.

For example:

```
chip8emu 10 3 roms/pong.ch8
```

Press Escape or close the window to quit. While running, the command prints
a `[DEBUG]` line for every cycle and every screen update.

### Keys

The 16-key hex keypad maps to the keyboard like this:

```
Keypad        Keyboard
1 2 3 C       1 2 3 4
4 5 6 D       Q W E R
7 8 9 E       A S D F
A 0 B F       Z X C V
```

### Profiling

The command always profiles. It creates `profile.csv` in the current
directory at start-up, writing the header line, and on exit appends one row
per label: label, call count, average, minimum and maximum time in
microseconds. The same table is printed to the console.

Two kinds of label are recorded: the hexadecimal value of each fetched
opcode (for example `602A`), timing the whole dispatch, and the name of the
instruction that ran (for example `6xkk`, `Dxyn`), timing just its body.

## Using it as a library

```python
from chip8emu.chip8 import Chip8
from chip8emu.profiler import Profiler

with Profiler(True, "profile.csv") as profiler:
    machine = Chip8(profiler=profiler)
    machine.load_bytes(bytes([0x60, 0x2A, 0x12, 0x02]))  # LD V0, 0x2A; JP 0x202
    for _ in range(10):
        machine.cycle()
    print(machine.registers[0])  # 42
```

`chip8emu.chip8.Chip8`:

- `Chip8(profiler=None, rng=None)`: `rng` is any object with a `randrange`
  method (used by `Cxkk`); it defaults to a new `random.Random`.
- `load_bytes(data)` copies a program to `0x200`; a program longer than
  3584 bytes raises `ValueError`. `load_rom(path)` reads a file and does the
  same, printing its name and size.
- `cycle()` fetches the instruction at the program counter, runs it, and
  counts down the delay and sound timers.
- `execute(opcode)` runs a single instruction without fetching it or
  touching the timers.
- State is public: `memory`, `registers`, `index`, `pc`, `sp`, `stack`,
  `delay_timer`, `sound_timer`, `keypad` (16 entries, non-zero means
  pressed) and `video` (64×32 values, each `0` or `0xFFFFFFFF`).

Opcodes with no matching instruction do nothing. A call with a full stack
raises `OverflowError`, a return with an empty stack raises `IndexError`, and
memory accesses past the end of memory by `Dxyn`, `Fx33`, `Fx55` or `Fx65`
raise `IndexError`.

`chip8emu.profiler.Profiler(enabled, filename=None)` times callables with
`profile_opcode(name, func)`. `stats()` returns the `OpcodeStats` per label,
`write_csv(stream)` writes the rows, `summary()` returns the text table, and
`close()` (or leaving the `with` block) writes the rows to the file and
prints the summary. A disabled profiler just runs the callables.

`chip8emu.display.Display` opens the window; `update(video)` draws a frame
and `process_input(keys)` applies keyboard events to a keypad, returning
True when the user asked to quit. `apply_key_event(keys, key, pressed)` maps
a single pygame key code onto a keypad.

## What it does not do

There is no sound: the sound timer counts down but nothing is played. The
window cannot be resized, and there is no way to pause, reset, save state or
change the profile file name from the command line.