"""Command-line entry point: run a ROM in a window."""

from __future__ import annotations

import argparse
import sys
import time
from typing import NoReturn, Optional, Sequence

from .chip8 import VIDEO_HEIGHT, VIDEO_WIDTH, Chip8
from .display import Display
from .profiler import Profiler

PROFILE_FILE = "profile.csv"
WINDOW_TITLE = "CHIP-8 Emulator"


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    """Parse ``<Scale> <Delay> <ROM>``; exits with status 1 on bad input."""
    parser = _Parser(prog="chip8", description="Run a CHIP-8 ROM.")
    parser.add_argument("scale", type=int, help="window scale factor")
    parser.add_argument("delay", type=int, help="milliseconds between cycles")
    parser.add_argument("rom", help="path of the ROM file")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the emulator until the window is closed or Escape is pressed."""
    args = parse_args(argv)

    with Profiler(True, PROFILE_FILE) as profiler:
        print(f"[INFO] Scale: {args.scale}, Delay: {args.delay} ms, ROM: {args.rom}")
        print("[INFO] Initializing platform...")
        with Display(
            WINDOW_TITLE,
            VIDEO_WIDTH * args.scale,
            VIDEO_HEIGHT * args.scale,
            VIDEO_WIDTH,
            VIDEO_HEIGHT,
        ) as display:
            print("[INFO] Platform initialized.")

            chip8 = Chip8(profiler=profiler)
            print("[INFO] Loading ROM...")
            try:
                chip8.load_rom(args.rom)
            except OSError:
                print(f"Failed to open ROM file: {args.rom}", file=sys.stderr)
            print("[INFO] ROM loaded.")

            last_cycle = time.perf_counter()
            print("[INFO] Entering main loop. Press ESC to exit.")

            quit_requested = False
            while not quit_requested:
                quit_requested = display.process_input(chip8.keypad)

                now = time.perf_counter()
                elapsed_ms = (now - last_cycle) * 1000.0
                if elapsed_ms > args.delay:
                    last_cycle = now
                    print("[DEBUG] Running one CPU cycle")
                    chip8.cycle()
                    print("[DEBUG] Updating screen")
                    display.update(chip8.video)

        print("[INFO] Exiting emulator.")
    return 0


if __name__ == "__main__":
    sys.exit(main())