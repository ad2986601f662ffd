"""64x32 monochrome framebuffer.

Cells hold one byte each (0x00 off, 0xFF on). Every coordinate is taken
modulo the screen size, so sprites drawn past an edge re-enter on the
opposite side.
"""
from __future__ import annotations

from .constants import PIXEL_OFF, PIXEL_ON, SCREEN_H, SCREEN_W


class DisplayBuffer:
    width = SCREEN_W
    height = SCREEN_H

    def __init__(self):
        self.cells = bytearray(SCREEN_W * SCREEN_H)
        # set whenever the picture changes, cleared by the presenter
        self.dirty = True

    def _index(self, x: int, y: int) -> int:
        return (y % SCREEN_H) * SCREEN_W + (x % SCREEN_W)

    def get(self, x: int, y: int) -> int:
        return self.cells[self._index(x, y)]

    def set(self, x: int, y: int, val: int):
        self.cells[self._index(x, y)] = val & 0xFF
        self.dirty = True

    def clear(self):
        self.cells[:] = bytes(len(self.cells))
        self.dirty = True

    def draw_sprite(self, x_pos: int, y_pos: int, rows: bytes) -> bool:
        """XOR `rows` onto the screen at (x_pos, y_pos).

        Returns True if any lit cell was switched off by the draw.
        """
        collision = False
        for row, sprite in enumerate(rows):
            for col in range(8):
                if not (sprite >> (7 - col)) & 1:
                    continue
                idx = self._index(x_pos + col, y_pos + row)
                old = self.cells[idx]
                if old == PIXEL_ON:
                    collision = True
                self.cells[idx] = old ^ PIXEL_ON
        self.dirty = True
        return collision

    def is_on(self, x: int, y: int) -> bool:
        return self.get(x, y) != PIXEL_OFF

    def to_bytes(self) -> bytes:
        return bytes(self.cells)

    def __str__(self) -> str:
        return "\n".join(
            "".join("#" if self.is_on(x, y) else "." for x in range(SCREEN_W))
            for y in range(SCREEN_H))
