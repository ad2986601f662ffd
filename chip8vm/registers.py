from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .constants import NUM_REGISTERS, STACK_DEPTH, START_ADDRESS
from .errors import StackOverflow, StackUnderflow


def saturating_dec(value: int, amount: int = 1) -> int:
    """Subtract without wrapping below zero."""
    return value - amount if value > amount else 0


@dataclass
class RegisterFile:
    V: List[int] = field(default_factory=lambda: [0] * NUM_REGISTERS)  # V0..VF
    I: int = 0
    pc: int = START_ADDRESS
    sp: int = 0
    stack: List[int] = field(default_factory=lambda: [0] * STACK_DEPTH)
    delay_timer: int = 0
    sound_timer: int = 0

    def push(self, address: int):
        if self.sp >= STACK_DEPTH:
            raise StackOverflow(self.pc)
        self.stack[self.sp] = address
        self.sp += 1

    def pop(self) -> int:
        if self.sp == 0:
            raise StackUnderflow(self.pc)
        self.sp -= 1
        return self.stack[self.sp]

    def tick_timers(self):
        self.delay_timer = saturating_dec(self.delay_timer)
        self.sound_timer = saturating_dec(self.sound_timer)

    def dump(self) -> str:
        lines = [f"V{i:X}: 0x{v:02X}" for i, v in enumerate(self.V)]
        lines.append(f"PC: 0x{self.pc:04X}")
        lines.append(f"I : 0x{self.I:04X}")
        lines.append(f"SP: 0x{self.sp:02X}")
        return "\n".join(lines)
