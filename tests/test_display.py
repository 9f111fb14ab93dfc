import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

from unittest import mock

import pygame
import pytest

from chip8emu.chip8 import PIXEL_ON, VIDEO_HEIGHT, VIDEO_WIDTH
from chip8emu.display import KEY_MAP, Display, apply_key_event


@pytest.fixture
def display():
    with Display("test", VIDEO_WIDTH * 2, VIDEO_HEIGHT * 2, VIDEO_WIDTH, VIDEO_HEIGHT) as d:
        yield d


@pytest.mark.parametrize(
    "key, slot",
    [
        (pygame.K_x, 0x0),
        (pygame.K_1, 0x1),
        (pygame.K_q, 0x4),
        (pygame.K_z, 0xA),
        (pygame.K_4, 0xC),
        (pygame.K_v, 0xF),
    ],
)
def test_press_and_release_sets_slot(key, slot):
    keys = bytearray(16)
    assert apply_key_event(keys, key, True) is True
    assert keys[slot] == 1
    assert sum(keys) == 1
    assert apply_key_event(keys, key, False) is True
    assert keys[slot] == 0


def test_unmapped_key_leaves_keypad_alone():
    keys = bytearray(16)
    assert apply_key_event(keys, pygame.K_p, True) is False
    assert keys == bytearray(16)


def test_key_map_covers_every_keypad_slot():
    assert sorted(KEY_MAP.values()) == list(range(16))


def test_escape_requests_quit(display):
    keys = bytearray(16)
    events = [pygame.event.Event(pygame.KEYDOWN, key=pygame.K_ESCAPE)]
    with mock.patch("pygame.event.get", return_value=events):
        assert display.process_input(keys) is True
    assert keys == bytearray(16)


def test_quit_event_requests_quit(display):
    with mock.patch("pygame.event.get", return_value=[pygame.event.Event(pygame.QUIT)]):
        assert display.process_input(bytearray(16)) is True


def test_key_events_update_keypad(display):
    keys = bytearray(16)
    down = [pygame.event.Event(pygame.KEYDOWN, key=pygame.K_w)]
    with mock.patch("pygame.event.get", return_value=down):
        assert display.process_input(keys) is False
    assert keys[5] == 1
    up = [pygame.event.Event(pygame.KEYUP, key=pygame.K_w)]
    with mock.patch("pygame.event.get", return_value=up):
        assert display.process_input(keys) is False
    assert keys[5] == 0


def test_update_rejects_wrong_frame_size(display):
    with pytest.raises(ValueError):
        display.update([0] * 10)


def test_update_draws_lit_and_dark_pixels(display):
    video = [0] * (VIDEO_WIDTH * VIDEO_HEIGHT)
    video[0] = PIXEL_ON
    display.update(video)
    assert tuple(display.window.get_at((0, 0)))[:3] == (255, 255, 255)
    far = (display.window.get_width() - 1, display.window.get_height() - 1)
    assert tuple(display.window.get_at(far))[:3] == (0, 0, 0)