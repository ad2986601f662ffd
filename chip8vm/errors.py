"""Faults raised by the virtual machine and the program loader."""
from __future__ import annotations


class Chip8Error(Exception):
    """Base class for every fault the emulator raises."""


class UnknownInstruction(Chip8Error):
    def __init__(self, opcode: int, pc: int):
        super().__init__(f"Unknown opcode: {opcode:04X} at PC {pc:03X}")
        self.opcode = opcode
        self.pc = pc


class MemoryFault(Chip8Error):
    def __init__(self, address: int, reason: str = "access"):
        super().__init__(f"Memory {reason} out of range at 0x{address:04X}")
        self.address = address


class StackFault(Chip8Error):
    def __init__(self, message: str, pc: int):
        super().__init__(f"{message} at PC {pc:03X}")
        self.pc = pc


class StackOverflow(StackFault):
    def __init__(self, pc: int):
        super().__init__("Stack overflow on CALL", pc)


class StackUnderflow(StackFault):
    def __init__(self, pc: int):
        super().__init__("Stack underflow on RET", pc)


class LoadError(Chip8Error):
    """The program could not be read or does not fit in memory."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class ProgramTooLarge(LoadError):
    def __init__(self, size: int, limit: int, path: str | None = None):
        super().__init__(
            f"ROM is too large for memory ({size} bytes, limit {limit})", path)
        self.size = size
        self.limit = limit


class QuitRequested(Exception):
    """Raised by the frontend when the user closes the window."""
