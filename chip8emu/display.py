"""Window, rendering and keyboard input for the interpreter."""

from __future__ import annotations

import struct
from typing import Dict, MutableSequence, Sequence

import pygame

KEY_MAP: Dict[int, int] = {
    pygame.K_x: 0x0,
    pygame.K_1: 0x1,
    pygame.K_2: 0x2,
    pygame.K_3: 0x3,
    pygame.K_q: 0x4,
    pygame.K_w: 0x5,
    pygame.K_e: 0x6,
    pygame.K_a: 0x7,
    pygame.K_s: 0x8,
    pygame.K_d: 0x9,
    pygame.K_z: 0xA,
    pygame.K_c: 0xB,
    pygame.K_4: 0xC,
    pygame.K_r: 0xD,
    pygame.K_f: 0xE,
    pygame.K_v: 0xF,
}


def apply_key_event(keys: MutableSequence[int], key: int, pressed: bool) -> bool:
    """Set the keypad entry for ``key`` to 1 or 0.

    Returns True when ``key`` is one of the mapped keypad keys.
    """
    slot = KEY_MAP.get(key)
    if slot is None:
        return False
    keys[slot] = 1 if pressed else 0
    return True


class Display:
    """A window showing a scaled RGBA8888 frame buffer."""

    def __init__(
        self,
        title: str,
        window_width: int,
        window_height: int,
        texture_width: int,
        texture_height: int,
    ) -> None:
        pygame.display.init()
        self.window = pygame.display.set_mode((window_width, window_height))
        pygame.display.set_caption(title)
        self.texture_size = (texture_width, texture_height)
        self._closed = False

    def update(self, video: Sequence[int]) -> None:
        """Draw one frame; ``video`` holds a 0xRRGGBBAA value per pixel."""
        width, height = self.texture_size
        count = width * height
        if len(video) != count:
            raise ValueError(
                f"frame has {len(video)} pixels, expected {count}"
            )
        data = struct.pack(f">{count}I", *video)
        frame = pygame.image.frombuffer(data, self.texture_size, "RGBA")
        scaled = pygame.transform.scale(frame, self.window.get_size())
        self.window.fill((0, 0, 0))
        self.window.blit(scaled, (0, 0))
        pygame.display.flip()

    def process_input(self, keys: MutableSequence[int]) -> bool:
        """Apply pending keyboard events to ``keys``; True means quit."""
        quit_requested = False
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                quit_requested = True
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    quit_requested = True
                else:
                    apply_key_event(keys, event.key, True)
            elif event.type == pygame.KEYUP:
                apply_key_event(keys, event.key, False)
        return quit_requested

    def close(self) -> None:
        """Close the window."""
        if self._closed:
            return
        self._closed = True
        pygame.display.quit()

    def __enter__(self) -> "Display":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()