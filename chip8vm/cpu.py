"""
CHIP-8 decode/dispatch engine.

Each call to `Chip8.step()` fetches one big-endian 16-bit instruction at PC,
finds the first entry of `Chip8.OPCODES` whose mask/match fits, and runs its
handler. Handlers return the next PC, or None to fall through to PC + 2.

Notes:
- FX55 / FX65 transfer V0..VX inclusive and do NOT modify I by default. Use
  legacy_store=True for the original quirk that leaves I = I + X + 1.
- BNNN uses V0 as the offset.
- Drawing wraps around screen edges; VF reports a lit pixel switched off.
- Timers only move when the host calls `tick()` (60 Hz), never from `step()`.
- Every fault is raised before any state changes, so a failed step leaves the
  machine exactly as it was for the dump.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, ClassVar, List, NamedTuple, Optional

from .constants import FLAG, FONT_ADDRESS, GLYPH_SIZE
from .display import DisplayBuffer
from .errors import UnknownInstruction
from .keypad import Keypad, KeyState
from .memory import Memory
from .registers import RegisterFile
from .rng import RandomSource

logger = logging.getLogger(__name__)


class StepResult(enum.Enum):
    EXECUTED = "executed"
    # FX0A found no key; PC was left in place
    AWAITING_KEY = "awaiting_key"


class Instruction(NamedTuple):
    opcode: int
    addr: int
    n: int
    x: int
    y: int
    kk: int

    @classmethod
    def decode(cls, opcode: int) -> "Instruction":
        return cls(
            opcode=opcode,
            addr=opcode & 0x0FFF,
            n=opcode & 0x000F,
            x=(opcode & 0x0F00) >> 8,
            y=(opcode & 0x00F0) >> 4,
            kk=opcode & 0x00FF,
        )


class OpcodeEntry(NamedTuple):
    mask: int
    match: int
    mnemonic: str
    handler: Callable[["Chip8", Instruction], Optional[int]]

    def matches(self, opcode: int) -> bool:
        return opcode & self.mask == self.match


@dataclass
class Chip8:
    # if True, FX55/FX65 increment I (original quirk)
    legacy_store: bool = False
    seed: Optional[int] = None
    keypad: Keypad = field(default_factory=KeyState)
    memory: Memory = field(default_factory=Memory)
    display: DisplayBuffer = field(default_factory=DisplayBuffer)
    regs: RegisterFile = field(default_factory=RegisterFile)
    awaiting_key: bool = field(default=False, init=False)
    cycles: int = field(default=0, init=False)

    def __post_init__(self):
        self.rng = RandomSource(self.seed)

    def load(self, program: bytes):
        self.memory.load(program)
        logger.info("Loaded %d byte program", len(program))

    def dump(self) -> str:
        return self.regs.dump()

    def tick(self):
        """Advance the delay and sound timers by one 1/60 s period."""
        self.regs.tick_timers()

    # =============== Core fetch/decode/execute cycle ===============
    @classmethod
    def lookup(cls, opcode: int) -> Optional[OpcodeEntry]:
        for entry in cls.OPCODES:
            if entry.matches(opcode):
                return entry
        return None

    @classmethod
    def disassemble(cls, opcode: int) -> str:
        entry = cls.lookup(opcode)
        if entry is None:
            return "???"
        return entry.mnemonic.format(**Instruction.decode(opcode)._asdict())

    def step(self) -> StepResult:
        pc = self.regs.pc
        opcode = self.memory.fetch(pc)
        entry = self.lookup(opcode)
        if entry is None:
            raise UnknownInstruction(opcode, pc)

        ins = Instruction.decode(opcode)
        if logger.isEnabledFor(logging.DEBUG) and not self.awaiting_key:
            logger.debug("%03X: %04X  %s", pc, opcode,
                         entry.mnemonic.format(**ins._asdict()))

        was_waiting, self.awaiting_key = self.awaiting_key, False
        next_pc = entry.handler(self, ins)
        self.regs.pc = pc + 2 if next_pc is None else next_pc
        self.cycles += 1
        if self.awaiting_key:
            if not was_waiting:
                logger.debug("Waiting for key press at %03X", pc)
            return StepResult.AWAITING_KEY
        return StepResult.EXECUTED

    # =============== Helpers ===============
    def _skip_if(self, condition: bool) -> Optional[int]:
        return self.regs.pc + 4 if condition else None

    def _set_flag(self, x: int, value: int, flag: int):
        # result first, so VF as destination ends up holding the flag
        self.regs.V[x] = value & 0xFF
        self.regs.V[FLAG] = flag

    # =============== Handlers ===============
    def _op_cls(self, ins):
        self.display.clear()

    def _op_ret(self, ins):
        return self.regs.pop() + 2

    def _op_jp(self, ins):
        return ins.addr

    def _op_call(self, ins):
        self.regs.push(self.regs.pc)
        return ins.addr

    def _op_se_byte(self, ins):
        return self._skip_if(self.regs.V[ins.x] == ins.kk)

    def _op_sne_byte(self, ins):
        return self._skip_if(self.regs.V[ins.x] != ins.kk)

    def _op_se_reg(self, ins):
        return self._skip_if(self.regs.V[ins.x] == self.regs.V[ins.y])

    def _op_ld_byte(self, ins):
        self.regs.V[ins.x] = ins.kk

    def _op_add_byte(self, ins):
        self.regs.V[ins.x] = (self.regs.V[ins.x] + ins.kk) & 0xFF

    def _op_ld_reg(self, ins):
        self.regs.V[ins.x] = self.regs.V[ins.y]

    def _op_or(self, ins):
        self.regs.V[ins.x] |= self.regs.V[ins.y]

    def _op_and(self, ins):
        self.regs.V[ins.x] &= self.regs.V[ins.y]

    def _op_xor(self, ins):
        self.regs.V[ins.x] ^= self.regs.V[ins.y]

    def _op_add_reg(self, ins):
        total = self.regs.V[ins.x] + self.regs.V[ins.y]
        self._set_flag(ins.x, total, 1 if total > 0xFF else 0)

    def _op_sub(self, ins):
        vx, vy = self.regs.V[ins.x], self.regs.V[ins.y]
        self._set_flag(ins.x, vx - vy, 1 if vx >= vy else 0)

    def _op_shr(self, ins):
        vx = self.regs.V[ins.x]
        self._set_flag(ins.x, vx >> 1, vx & 0x1)

    def _op_subn(self, ins):
        vx, vy = self.regs.V[ins.x], self.regs.V[ins.y]
        self._set_flag(ins.x, vy - vx, 1 if vy >= vx else 0)

    def _op_shl(self, ins):
        vx = self.regs.V[ins.x]
        self._set_flag(ins.x, vx << 1, (vx >> 7) & 0x1)

    def _op_sne_reg(self, ins):
        return self._skip_if(self.regs.V[ins.x] != self.regs.V[ins.y])

    def _op_ld_i(self, ins):
        self.regs.I = ins.addr

    def _op_jp_v0(self, ins):
        return ins.addr + self.regs.V[0]

    def _op_rnd(self, ins):
        self.regs.V[ins.x] = self.rng.next_byte() & ins.kk

    def _op_drw(self, ins):
        rows = self.memory.read_block(self.regs.I, ins.n)
        collided = self.display.draw_sprite(
            self.regs.V[ins.x], self.regs.V[ins.y], rows)
        self.regs.V[FLAG] = 1 if collided else 0

    def _op_skp(self, ins):
        return self._skip_if(self.keypad.is_down(self.regs.V[ins.x] & 0xF))

    def _op_sknp(self, ins):
        return self._skip_if(not self.keypad.is_down(self.regs.V[ins.x] & 0xF))

    def _op_ld_vx_dt(self, ins):
        self.regs.V[ins.x] = self.regs.delay_timer

    def _op_ld_vx_k(self, ins):
        key = self.keypad.last_pressed()
        if key is None:
            self.awaiting_key = True
            return self.regs.pc
        self.keypad.clear_last_pressed()
        self.regs.V[ins.x] = key & 0xF

    def _op_ld_dt(self, ins):
        self.regs.delay_timer = self.regs.V[ins.x]

    def _op_ld_st(self, ins):
        self.regs.sound_timer = self.regs.V[ins.x]

    def _op_add_i(self, ins):
        self.regs.I = (self.regs.I + self.regs.V[ins.x]) & 0xFFFF

    def _op_ld_f(self, ins):
        # Point I to the sprite for digit in Vx, 5 bytes per sprite
        self.regs.I = FONT_ADDRESS + GLYPH_SIZE * self.regs.V[ins.x]

    def _op_ld_b(self, ins):
        val = self.regs.V[ins.x]
        self.memory.write_block(self.regs.I, (val // 100, (val // 10) % 10, val % 10))

    def _op_ld_mem_v(self, ins):
        self.memory.write_block(self.regs.I, self.regs.V[:ins.x + 1])
        if self.legacy_store:
            self.regs.I = (self.regs.I + ins.x + 1) & 0xFFFF

    def _op_ld_v_mem(self, ins):
        values = self.memory.read_block(self.regs.I, ins.x + 1)
        self.regs.V[:ins.x + 1] = list(values)
        if self.legacy_store:
            self.regs.I = (self.regs.I + ins.x + 1) & 0xFFFF

    # First match wins; exact encodings precede the broader 0NNN family.
    OPCODES: ClassVar[List[OpcodeEntry]] = [
        OpcodeEntry(0xFFFF, 0x00E0, "CLS", _op_cls),
        OpcodeEntry(0xFFFF, 0x00EE, "RET", _op_ret),
        OpcodeEntry(0xF000, 0x1000, "JP 0x{addr:03X}", _op_jp),
        OpcodeEntry(0xF000, 0x2000, "CALL 0x{addr:03X}", _op_call),
        OpcodeEntry(0xF000, 0x3000, "SE V{x:X}, 0x{kk:02X}", _op_se_byte),
        OpcodeEntry(0xF000, 0x4000, "SNE V{x:X}, 0x{kk:02X}", _op_sne_byte),
        OpcodeEntry(0xF00F, 0x5000, "SE V{x:X}, V{y:X}", _op_se_reg),
        OpcodeEntry(0xF000, 0x6000, "LD V{x:X}, 0x{kk:02X}", _op_ld_byte),
        OpcodeEntry(0xF000, 0x7000, "ADD V{x:X}, 0x{kk:02X}", _op_add_byte),
        OpcodeEntry(0xF00F, 0x8000, "LD V{x:X}, V{y:X}", _op_ld_reg),
        OpcodeEntry(0xF00F, 0x8001, "OR V{x:X}, V{y:X}", _op_or),
        OpcodeEntry(0xF00F, 0x8002, "AND V{x:X}, V{y:X}", _op_and),
        OpcodeEntry(0xF00F, 0x8003, "XOR V{x:X}, V{y:X}", _op_xor),
        OpcodeEntry(0xF00F, 0x8004, "ADD V{x:X}, V{y:X}", _op_add_reg),
        OpcodeEntry(0xF00F, 0x8005, "SUB V{x:X}, V{y:X}", _op_sub),
        OpcodeEntry(0xF00F, 0x8006, "SHR V{x:X}", _op_shr),
        OpcodeEntry(0xF00F, 0x8007, "SUBN V{x:X}, V{y:X}", _op_subn),
        OpcodeEntry(0xF00F, 0x800E, "SHL V{x:X}", _op_shl),
        OpcodeEntry(0xF00F, 0x9000, "SNE V{x:X}, V{y:X}", _op_sne_reg),
        OpcodeEntry(0xF000, 0xA000, "LD I, 0x{addr:03X}", _op_ld_i),
        OpcodeEntry(0xF000, 0xB000, "JP V0, 0x{addr:03X}", _op_jp_v0),
        OpcodeEntry(0xF000, 0xC000, "RND V{x:X}, 0x{kk:02X}", _op_rnd),
        OpcodeEntry(0xF000, 0xD000, "DRW V{x:X}, V{y:X}, {n}", _op_drw),
        OpcodeEntry(0xF0FF, 0xE09E, "SKP V{x:X}", _op_skp),
        OpcodeEntry(0xF0FF, 0xE0A1, "SKNP V{x:X}", _op_sknp),
        OpcodeEntry(0xF0FF, 0xF007, "LD V{x:X}, DT", _op_ld_vx_dt),
        OpcodeEntry(0xF0FF, 0xF00A, "LD V{x:X}, K", _op_ld_vx_k),
        OpcodeEntry(0xF0FF, 0xF015, "LD DT, V{x:X}", _op_ld_dt),
        OpcodeEntry(0xF0FF, 0xF018, "LD ST, V{x:X}", _op_ld_st),
        OpcodeEntry(0xF0FF, 0xF01E, "ADD I, V{x:X}", _op_add_i),
        OpcodeEntry(0xF0FF, 0xF029, "LD F, V{x:X}", _op_ld_f),
        OpcodeEntry(0xF0FF, 0xF033, "LD B, V{x:X}", _op_ld_b),
        OpcodeEntry(0xF0FF, 0xF055, "LD [I], V{x:X}", _op_ld_mem_v),
        OpcodeEntry(0xF0FF, 0xF065, "LD V{x:X}, [I]", _op_ld_v_mem),
    ]
