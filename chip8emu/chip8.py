"""The CHIP-8 virtual machine: memory, registers, timers and instruction set."""

from __future__ import annotations

import functools
import random
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Union

from .profiler import Profiler

KEY_COUNT = 16
MEMORY_SIZE = 4096
REGISTER_COUNT = 16
STACK_LEVELS = 16
VIDEO_HEIGHT = 32
VIDEO_WIDTH = 64

FONTSET_START_ADDRESS = 0x50
START_ADDRESS = 0x200
PIXEL_ON = 0xFFFFFFFF

FONTSET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


def _profiled(name: str):
    """Run the wrapped instruction through the machine's profiler, if any."""

    def decorate(method: Callable[["Chip8"], None]) -> Callable[["Chip8"], None]:
        @functools.wraps(method)
        def wrapper(self: "Chip8") -> None:
            if self.profiler is None:
                method(self)
            else:
                self.profiler.profile_opcode(name, lambda: method(self))

        return wrapper

    return decorate


class Chip8:
    """A CHIP-8 interpreter.

    ``rng`` is any object with a ``randrange`` method; it defaults to a fresh
    ``random.Random``. ``video`` holds one 32-bit value per pixel, either 0 or
    ``PIXEL_ON``. Opcodes with no matching instruction are ignored.
    """

    def __init__(self, profiler: Optional[Profiler] = None, rng=None) -> None:
        self.profiler = profiler
        self.rng = rng if rng is not None else random.Random()

        self.keypad = bytearray(KEY_COUNT)
        self.video = [0] * (VIDEO_WIDTH * VIDEO_HEIGHT)
        self.memory = bytearray(MEMORY_SIZE)
        self.registers = bytearray(REGISTER_COUNT)
        self.index = 0
        self.pc = START_ADDRESS
        self.delay_timer = 0
        self.sound_timer = 0
        self.stack = [0] * STACK_LEVELS
        self.sp = 0
        self.opcode = 0

        self.memory[FONTSET_START_ADDRESS:FONTSET_START_ADDRESS + len(FONTSET)] = FONTSET

        self._table: Dict[int, Callable[[], None]] = {
            0x0: self._table0,
            0x1: self._op_1nnn,
            0x2: self._op_2nnn,
            0x3: self._op_3xkk,
            0x4: self._op_4xkk,
            0x5: self._op_5xy0,
            0x6: self._op_6xkk,
            0x7: self._op_7xkk,
            0x8: self._table8,
            0x9: self._op_9xy0,
            0xA: self._op_annn,
            0xB: self._op_bnnn,
            0xC: self._op_cxkk,
            0xD: self._op_dxyn,
            0xE: self._table_e,
            0xF: self._table_f,
        }
        self._ops0 = {0x0: self._op_00e0, 0xE: self._op_00ee}
        self._ops8 = {
            0x0: self._op_8xy0,
            0x1: self._op_8xy1,
            0x2: self._op_8xy2,
            0x3: self._op_8xy3,
            0x4: self._op_8xy4,
            0x5: self._op_8xy5,
            0x6: self._op_8xy6,
            0x7: self._op_8xy7,
            0xE: self._op_8xye,
        }
        self._ops_e = {0x1: self._op_exa1, 0xE: self._op_ex9e}
        self._ops_f = {
            0x07: self._op_fx07,
            0x0A: self._op_fx0a,
            0x15: self._op_fx15,
            0x18: self._op_fx18,
            0x1E: self._op_fx1e,
            0x29: self._op_fx29,
            0x33: self._op_fx33,
            0x55: self._op_fx55,
            0x65: self._op_fx65,
        }

    # ----------------------------------------------------------------- loading

    def load_rom(self, path: Union[str, Path]) -> None:
        """Load a ROM file into memory at the program start address."""
        data = Path(path).read_bytes()
        self.load_bytes(data)
        print(f"ROM loaded successfully: {path}")
        print(f"Size: {len(data)} bytes")

    def load_bytes(self, data: bytes) -> None:
        """Copy program bytes into memory at the program start address."""
        if len(data) > MEMORY_SIZE - START_ADDRESS:
            raise ValueError(
                f"ROM of {len(data)} bytes does not fit in "
                f"{MEMORY_SIZE - START_ADDRESS} bytes of program memory"
            )
        self.memory[START_ADDRESS:START_ADDRESS + len(data)] = data

    # --------------------------------------------------------------- execution

    def cycle(self) -> None:
        """Fetch, decode and execute one instruction, then tick the timers."""
        self.opcode = (self.memory[self.pc] << 8) | self.memory[self.pc + 1]
        self.pc = (self.pc + 2) & 0xFFFF

        if self.profiler is not None:
            self.profiler.profile_opcode(f"{self.opcode:X}", self._dispatch)
        else:
            self._dispatch()

        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    def execute(self, opcode: int) -> None:
        """Execute a single opcode without fetching or ticking timers."""
        self.opcode = opcode & 0xFFFF
        self._dispatch()

    def _dispatch(self) -> None:
        self._table[self.opcode >> 12]()

    @staticmethod
    def _run(ops: Mapping[int, Callable[[], None]], key: int) -> None:
        handler = ops.get(key)
        if handler is not None:
            handler()

    def _table0(self) -> None:
        self._run(self._ops0, self.opcode & 0x000F)

    def _table8(self) -> None:
        self._run(self._ops8, self.opcode & 0x000F)

    def _table_e(self) -> None:
        self._run(self._ops_e, self.opcode & 0x000F)

    def _table_f(self) -> None:
        self._run(self._ops_f, self.opcode & 0x00FF)

    # ------------------------------------------------------------ decoding

    @property
    def _x(self) -> int:
        return (self.opcode & 0x0F00) >> 8

    @property
    def _y(self) -> int:
        return (self.opcode & 0x00F0) >> 4

    @property
    def _kk(self) -> int:
        return self.opcode & 0x00FF

    @property
    def _nnn(self) -> int:
        return self.opcode & 0x0FFF

    @property
    def _n(self) -> int:
        return self.opcode & 0x000F

    def _check_memory(self, start: int, count: int) -> None:
        if start + count > MEMORY_SIZE:
            raise IndexError(
                f"memory access {start:#x}..{start + count - 1:#x} out of range"
            )

    # ---------------------------------------------------------- instructions

    @_profiled("00E0")
    def _op_00e0(self) -> None:
        self.video[:] = [0] * len(self.video)

    @_profiled("00EE")
    def _op_00ee(self) -> None:
        if self.sp == 0:
            raise IndexError("return with an empty call stack")
        self.sp -= 1
        self.pc = self.stack[self.sp]

    @_profiled("1nnn")
    def _op_1nnn(self) -> None:
        self.pc = self._nnn

    @_profiled("2nnn")
    def _op_2nnn(self) -> None:
        if self.sp >= STACK_LEVELS:
            raise OverflowError("call stack overflow")
        self.stack[self.sp] = self.pc
        self.sp += 1
        self.pc = self._nnn

    @_profiled("3xkk")
    def _op_3xkk(self) -> None:
        if self.registers[self._x] == self._kk:
            self.pc = (self.pc + 2) & 0xFFFF

    @_profiled("4xkk")
    def _op_4xkk(self) -> None:
        if self.registers[self._x] != self._kk:
            self.pc = (self.pc + 2) & 0xFFFF

    @_profiled("5xy0")
    def _op_5xy0(self) -> None:
        if self.registers[self._x] == self.registers[self._y]:
            self.pc = (self.pc + 2) & 0xFFFF

    @_profiled("6xkk")
    def _op_6xkk(self) -> None:
        self.registers[self._x] = self._kk

    @_profiled("7xkk")
    def _op_7xkk(self) -> None:
        x = self._x
        self.registers[x] = (self.registers[x] + self._kk) & 0xFF

    @_profiled("8xy0")
    def _op_8xy0(self) -> None:
        self.registers[self._x] = self.registers[self._y]

    @_profiled("8xy1")
    def _op_8xy1(self) -> None:
        self.registers[self._x] |= self.registers[self._y]

    @_profiled("8xy2")
    def _op_8xy2(self) -> None:
        self.registers[self._x] &= self.registers[self._y]

    @_profiled("8xy3")
    def _op_8xy3(self) -> None:
        self.registers[self._x] ^= self.registers[self._y]

    @_profiled("8xy4")
    def _op_8xy4(self) -> None:
        x, y = self._x, self._y
        total = self.registers[x] + self.registers[y]
        self.registers[0xF] = 1 if total > 0xFF else 0
        self.registers[x] = total & 0xFF

    @_profiled("8xy5")
    def _op_8xy5(self) -> None:
        x, y = self._x, self._y
        self.registers[0xF] = 1 if self.registers[x] > self.registers[y] else 0
        self.registers[x] = (self.registers[x] - self.registers[y]) & 0xFF

    @_profiled("8xy6")
    def _op_8xy6(self) -> None:
        x = self._x
        self.registers[0xF] = self.registers[x] & 0x1
        self.registers[x] >>= 1

    @_profiled("8xy7")
    def _op_8xy7(self) -> None:
        x, y = self._x, self._y
        self.registers[0xF] = 1 if self.registers[y] > self.registers[x] else 0
        self.registers[x] = (self.registers[y] - self.registers[x]) & 0xFF

    @_profiled("8xyE")
    def _op_8xye(self) -> None:
        x = self._x
        self.registers[0xF] = (self.registers[x] & 0x80) >> 7
        self.registers[x] = (self.registers[x] << 1) & 0xFF

    @_profiled("9xy0")
    def _op_9xy0(self) -> None:
        if self.registers[self._x] != self.registers[self._y]:
            self.pc = (self.pc + 2) & 0xFFFF

    @_profiled("Annn")
    def _op_annn(self) -> None:
        self.index = self._nnn

    @_profiled("Bnnn")
    def _op_bnnn(self) -> None:
        self.pc = (self.registers[0] + self._nnn) & 0xFFFF

    @_profiled("Cxkk")
    def _op_cxkk(self) -> None:
        self.registers[self._x] = self.rng.randrange(256) & self._kk

    @_profiled("Dxyn")
    def _op_dxyn(self) -> None:
        x_pos = self.registers[self._x] % VIDEO_WIDTH
        y_pos = self.registers[self._y] % VIDEO_HEIGHT
        height = self._n
        self._check_memory(self.index, height)
        self.registers[0xF] = 0

        for row in range(height):
            sprite_byte = self.memory[self.index + row]
            pixel_y = (y_pos + row) % VIDEO_HEIGHT
            for col in range(8):
                if sprite_byte & (0x80 >> col):
                    pos = pixel_y * VIDEO_WIDTH + (x_pos + col) % VIDEO_WIDTH
                    if self.video[pos] == PIXEL_ON:
                        self.registers[0xF] = 1
                    self.video[pos] ^= PIXEL_ON

    @_profiled("Ex9E")
    def _op_ex9e(self) -> None:
        if self.keypad[self.registers[self._x]]:
            self.pc = (self.pc + 2) & 0xFFFF

    @_profiled("Exa1")
    def _op_exa1(self) -> None:
        if not self.keypad[self.registers[self._x]]:
            self.pc = (self.pc + 2) & 0xFFFF

    @_profiled("Fx07")
    def _op_fx07(self) -> None:
        self.registers[self._x] = self.delay_timer

    @_profiled("Fx0A")
    def _op_fx0a(self) -> None:
        pressed = next((key for key, down in enumerate(self.keypad) if down), None)
        if pressed is None:
            self.pc = (self.pc - 2) & 0xFFFF
        else:
            self.registers[self._x] = pressed

    @_profiled("Fx15")
    def _op_fx15(self) -> None:
        self.delay_timer = self.registers[self._x]

    @_profiled("Fx18")
    def _op_fx18(self) -> None:
        self.sound_timer = self.registers[self._x]

    @_profiled("Fx1E")
    def _op_fx1e(self) -> None:
        self.index = (self.index + self.registers[self._x]) & 0xFFFF

    @_profiled("Fx29")
    def _op_fx29(self) -> None:
        self.index = FONTSET_START_ADDRESS + 5 * self.registers[self._x]

    @_profiled("Fx33")
    def _op_fx33(self) -> None:
        self._check_memory(self.index, 3)
        value = self.registers[self._x]
        self.memory[self.index:self.index + 3] = bytes(
            [value // 100 % 10, value // 10 % 10, value % 10]
        )

    @_profiled("Fx55")
    def _op_fx55(self) -> None:
        count = self._x + 1
        self._check_memory(self.index, count)
        self.memory[self.index:self.index + count] = self.registers[:count]

    @_profiled("Fx65")
    def _op_fx65(self) -> None:
        count = self._x + 1
        self._check_memory(self.index, count)
        self.registers[:count] = self.memory[self.index:self.index + count]