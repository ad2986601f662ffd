"""Hex keypad capability consumed by the engine.

  1 2 3 C
  4 5 6 D
  7 8 9 E
  A 0 B F
"""
from __future__ import annotations

from typing import List, Optional, Protocol

from .constants import NUM_KEYS


class Keypad(Protocol):
    def is_down(self, key: int) -> bool:
        ...

    def last_pressed(self) -> Optional[int]:
        ...

    def clear_last_pressed(self):
        ...


class KeyState:
    """In-memory keypad driven by press/release events.

    Each press is latched until FX0A consumes it, so a tap that starts and
    ends between two steps is still seen.
    """

    def __init__(self):
        self.keys: List[bool] = [False] * NUM_KEYS
        self._latched: Optional[int] = None

    def press(self, key: int):
        key &= 0xF
        self.keys[key] = True
        self._latched = key

    def release(self, key: int):
        self.keys[key & 0xF] = False

    def set(self, key: int, is_down: bool):
        if is_down:
            self.press(key)
        else:
            self.release(key)

    def release_all(self):
        self.keys = [False] * NUM_KEYS
        self._latched = None

    def is_down(self, key: int) -> bool:
        if 0 <= key <= 0xF:
            return self.keys[key]
        return False

    def last_pressed(self) -> Optional[int]:
        return self._latched

    def clear_last_pressed(self):
        self._latched = None
