from __future__ import annotations

import random
from typing import Optional


class RandomSource:
    """Seedable byte generator backing the RND instruction."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def next_byte(self) -> int:
        return self._random.randint(0, 255)
