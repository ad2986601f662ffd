"""
pygame presenter for the display buffer plus keyboard polling.

Keyboard mapping (common layout):

  CHIP-8  =>  Keyboard
  1 2 3 C =>  1 2 3 4
  4 5 6 D =>  Q W E R
  7 8 9 E =>  A S D F
  A 0 B F =>  Z X C V
"""
from __future__ import annotations

import logging
import sys

import numpy as np

try:
    import pygame
except Exception:
    print("This emulator requires pygame. Install with: pip install pygame", file=sys.stderr)
    raise

from .constants import SCREEN_H, SCREEN_W
from .display import DisplayBuffer
from .errors import QuitRequested
from .keypad import KeyState

logger = logging.getLogger(__name__)

# Keyboard mapping: CHIP-8 key index -> pygame key
KEYMAP = {
    0x0: pygame.K_x,
    0x1: pygame.K_1,
    0x2: pygame.K_2,
    0x3: pygame.K_3,
    0x4: pygame.K_q,
    0x5: pygame.K_w,
    0x6: pygame.K_e,
    0x7: pygame.K_a,
    0x8: pygame.K_s,
    0x9: pygame.K_d,
    0xA: pygame.K_z,
    0xB: pygame.K_c,
    0xC: pygame.K_4,
    0xD: pygame.K_r,
    0xE: pygame.K_f,
    0xF: pygame.K_v,
}
KEY_LOOKUP = {pgk: k_idx for k_idx, pgk in KEYMAP.items()}

FOREGROUND = (255, 255, 255)
BACKGROUND = (0, 0, 0)


def display_to_array(display: DisplayBuffer) -> np.ndarray:
    """Framebuffer as a (width, height) uint8 array, the surfarray layout."""
    cells = np.frombuffer(display.to_bytes(), dtype=np.uint8)
    return cells.reshape((SCREEN_H, SCREEN_W)).T


def apply_key_event(keypad: KeyState, pygame_key: int, is_down: bool) -> bool:
    """Forward a keyboard event to the keypad; False if the key is unmapped."""
    k_idx = KEY_LOOKUP.get(pygame_key)
    if k_idx is None:
        return False
    keypad.set(k_idx, is_down)
    return True


class Frontend:
    def __init__(self, display: DisplayBuffer, keypad: KeyState, scale: int = 10):
        self.display = display
        self.keypad = keypad
        self.scale = max(1, int(scale))
        self.surface = pygame.display.set_mode(
            (SCREEN_W * self.scale, SCREEN_H * self.scale))
        pygame.display.set_caption("chip8vm")
        # 8-bit surface at native resolution, scaled up on render
        self.screen = pygame.Surface((SCREEN_W, SCREEN_H), 0, 8)
        self.screen.set_palette([BACKGROUND] + [FOREGROUND] * 255)
        self.clock = pygame.time.Clock()

    def handle_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                raise QuitRequested()
            elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
                is_down = event.type == pygame.KEYDOWN
                # Escape to quit
                if event.key == pygame.K_ESCAPE:
                    raise QuitRequested()
                apply_key_event(self.keypad, event.key, is_down)

    def render(self):
        pygame.surfarray.blit_array(self.screen, display_to_array(self.display))
        self.surface.blit(
            pygame.transform.scale(self.screen, self.surface.get_size()), (0, 0))
        pygame.display.flip()
        self.display.dirty = False

    def tick(self, fps: int):
        self.clock.tick(fps)

    def close(self):
        pygame.quit()
