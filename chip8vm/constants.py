"""Machine constants shared by the core and the host."""
from __future__ import annotations

# ==============================
# Memory
# ==============================
MEM_SIZE = 4096
START_ADDRESS = 0x200
MAX_PROGRAM_SIZE = MEM_SIZE - START_ADDRESS  # 3584
FONT_ADDRESS = 0x000
GLYPH_SIZE = 5

# ==============================
# Registers / stack
# ==============================
NUM_REGISTERS = 16
STACK_DEPTH = 16
FLAG = 0xF  # VF

# ==============================
# Display
# ==============================
SCREEN_W, SCREEN_H = 64, 32
PIXEL_ON = 0xFF
PIXEL_OFF = 0x00

# ==============================
# Timing
# ==============================
TIMER_HZ = 60
NUM_KEYS = 16

# Classic CHIP-8 4x5 font (each char 5 bytes)
FONTSET = bytes((
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
))

# Process exit statuses used by the host loop
EXIT_OK = 0
EXIT_LOAD_ERROR = 1
EXIT_FAULT = 0xFF
