"""A CHIP-8 interpreter with a pygame display and opcode profiling."""

__version__ = "0.1.0"
__all__ = ["chip8", "cli", "display", "profiler"]