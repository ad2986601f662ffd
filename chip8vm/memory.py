from __future__ import annotations

from .constants import (FONT_ADDRESS, FONTSET, MAX_PROGRAM_SIZE, MEM_SIZE,
                        START_ADDRESS)
from .errors import MemoryFault, ProgramTooLarge


class Memory:
    """Flat 4 KiB byte store with the font table in low memory."""

    def __init__(self):
        self.data = bytearray(MEM_SIZE)
        self.data[FONT_ADDRESS:FONT_ADDRESS + len(FONTSET)] = FONTSET

    def __len__(self) -> int:
        return len(self.data)

    def load(self, program: bytes):
        if len(program) > MAX_PROGRAM_SIZE:
            raise ProgramTooLarge(len(program), MAX_PROGRAM_SIZE)
        end = START_ADDRESS + len(program)
        self.data[START_ADDRESS:end] = program

    def _check(self, address: int, length: int = 1, reason: str = "access"):
        if address < 0 or address + length > MEM_SIZE:
            # report the first byte that falls outside
            bad = address if address < 0 or address >= MEM_SIZE else MEM_SIZE
            raise MemoryFault(bad, reason)

    def fetch(self, pc: int) -> int:
        self._check(pc, 2, "fetch")
        hi = self.data[pc]
        lo = self.data[pc + 1]
        return (hi << 8) | lo

    def read(self, address: int) -> int:
        self._check(address)
        return self.data[address]

    def read_block(self, address: int, length: int) -> bytes:
        self._check(address, length)
        return bytes(self.data[address:address + length])

    def write(self, address: int, value: int):
        self._check(address)
        self.data[address] = value & 0xFF

    def write_block(self, address: int, values):
        values = bytes(v & 0xFF for v in values)
        self._check(address, len(values))
        self.data[address:address + len(values)] = values
