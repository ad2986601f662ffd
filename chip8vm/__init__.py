"""chip8vm: a CHIP-8 virtual machine with a pygame frontend.

Modules:
    constants: memory map, screen geometry, font table
    memory / display / registers: machine state
    keypad / rng: collaborators consumed by the engine
    cpu: fetch/decode/dispatch engine (`Chip8`)
    loader: reading ROM images from disk
    frontend: pygame window and keyboard (imported on demand)
    cli: argparse entry point and host loop
"""

__version__ = "0.1.0"

from .cpu import Chip8, Instruction, StepResult
from .display import DisplayBuffer
from .errors import (Chip8Error, LoadError, MemoryFault, ProgramTooLarge,
                     StackFault, StackOverflow, StackUnderflow,
                     UnknownInstruction)
from .keypad import Keypad, KeyState
from .memory import Memory
from .registers import RegisterFile
from .rng import RandomSource

__all__ = [
    "Chip8", "Instruction", "StepResult", "DisplayBuffer", "Memory",
    "RegisterFile", "RandomSource", "Keypad", "KeyState", "Chip8Error",
    "LoadError", "MemoryFault", "ProgramTooLarge", "StackFault",
    "StackOverflow", "StackUnderflow", "UnknownInstruction",
]
