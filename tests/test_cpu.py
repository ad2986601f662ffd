"""Tests for the Chip8 decode/dispatch engine."""

import pytest

from chip8vm import Chip8, StepResult
from chip8vm.constants import PIXEL_ON
from chip8vm.errors import (MemoryFault, StackOverflow, StackUnderflow,
                            UnknownInstruction)
from conftest import program


class TestLoadAndStore:

    @pytest.mark.parametrize("reg", range(16))
    def test_ld_byte_every_register(self, run_ops, reg):
        """6xkk sets Vx and advances pc by 2."""
        vm = run_ops(0x6000 | (reg << 8) | 0xA5)
        assert vm.regs.V[reg] == 0xA5
        assert vm.regs.pc == 0x202

    @pytest.mark.parametrize("addr", [0x000, 0x001, 0x2F0, 0xFFF])
    def test_ld_i(self, run_ops, addr):
        vm = run_ops(0xA000 | addr)
        assert vm.regs.I == addr
        assert vm.regs.pc == 0x202

    def test_add_byte_wraps_without_flag(self, run_ops):
        vm = run_ops(0x60FF, 0x6F07, 0x7002)
        assert vm.regs.V[0] == 0x01
        assert vm.regs.V[0xF] == 0x07

    def test_ld_reg(self, run_ops):
        vm = run_ops(0x6142, 0x8010)
        assert vm.regs.V[0] == 0x42


class TestFlowControl:

    def test_jump(self, run_ops):
        vm = run_ops(0x1345)
        assert vm.regs.pc == 0x345

    def test_call_and_return(self, vm):
        """CALL pushes its own address, RET resumes after it."""
        rom = bytearray(program(0x2300))
        rom += bytes(0x100 - len(rom))
        rom += program(0x00EE)
        vm.load(bytes(rom))

        vm.step()
        assert vm.regs.stack[0] == 0x200
        assert vm.regs.sp == 1
        assert vm.regs.pc == 0x300

        vm.step()
        assert vm.regs.sp == 0
        assert vm.regs.pc == 0x202

    def test_jump_v0(self, run_ops):
        vm = run_ops(0x6010, 0xB300)
        assert vm.regs.pc == 0x310

    @pytest.mark.parametrize("ops,expected_pc", [
        ((0x6005, 0x3005), 0x206),  # SE taken
        ((0x6005, 0x3006), 0x204),  # SE not taken
        ((0x6005, 0x4006), 0x206),  # SNE taken
        ((0x6005, 0x4005), 0x204),  # SNE not taken
        ((0x6005, 0x6105, 0x5010), 0x208),  # SE Vx, Vy taken
        ((0x6005, 0x6106, 0x5010), 0x206),
        ((0x6005, 0x6106, 0x9010), 0x208),  # SNE Vx, Vy taken
        ((0x6005, 0x6105, 0x9010), 0x206),
    ])
    def test_skips(self, run_ops, ops, expected_pc):
        vm = run_ops(*ops)
        assert vm.regs.pc == expected_pc

    def test_call_overflow_faults_without_mutation(self, vm):
        vm.load(program(0x2200))  # calls itself forever
        for _ in range(16):
            vm.step()
        assert vm.regs.sp == 16
        with pytest.raises(StackOverflow):
            vm.step()
        assert vm.regs.sp == 16
        assert vm.regs.pc == 0x200

    def test_ret_underflow(self, vm):
        vm.load(program(0x00EE))
        with pytest.raises(StackUnderflow):
            vm.step()
        assert vm.regs.pc == 0x200
        assert vm.regs.sp == 0


class TestArithmetic:

    def test_or_and_xor(self, run_ops):
        vm = run_ops(0x60F0, 0x610F, 0x6233, 0x6355,
                     0x8011, 0x8232, 0x6F09, 0x8313)
        assert vm.regs.V[0] == 0xFF
        assert vm.regs.V[2] == 0x11
        assert vm.regs.V[3] == 0x5A
        # logic ops leave VF alone
        assert vm.regs.V[0xF] == 0x09

    def test_add_carry(self, run_ops):
        vm = run_ops(0x60FF, 0x6101, 0x8014)
        assert vm.regs.V[0] == 0x00
        assert vm.regs.V[0xF] == 1

    def test_add_no_carry(self, run_ops):
        vm = run_ops(0x6010, 0x6120, 0x6F01, 0x8014)
        assert vm.regs.V[0] == 0x30
        assert vm.regs.V[0xF] == 0

    @pytest.mark.parametrize("vx,vy,result,flag", [
        (0x05, 0x03, 0x02, 1),
        (0x03, 0x03, 0x00, 1),  # equal operands: no borrow
        (0x03, 0x05, 0xFE, 0),
    ])
    def test_sub(self, run_ops, vx, vy, result, flag):
        vm = run_ops(0x6000 | vx, 0x6100 | vy, 0x8015)
        assert vm.regs.V[0] == result
        assert vm.regs.V[0xF] == flag

    def test_subn_no_borrow(self, run_ops):
        vm = run_ops(0x6001, 0x6102, 0x8017)
        assert vm.regs.V[0] == 0x01
        assert vm.regs.V[0xF] == 1

    def test_subn_borrow(self, run_ops):
        vm = run_ops(0x6002, 0x6101, 0x8017)
        assert vm.regs.V[0] == 0xFF
        assert vm.regs.V[0xF] == 0

    def test_shr(self, run_ops):
        vm = run_ops(0x6005, 0x8006)
        assert vm.regs.V[0] == 0x02
        assert vm.regs.V[0xF] == 1

    def test_shl(self, run_ops):
        vm = run_ops(0x6081, 0x800E)
        assert vm.regs.V[0] == 0x02
        assert vm.regs.V[0xF] == 1

    def test_flag_wins_when_vf_is_destination(self, run_ops):
        vm = run_ops(0x6FFF, 0x6101, 0x8F14)
        assert vm.regs.V[0xF] == 1

    def test_add_i_wraps_16_bit(self, vm):
        vm.load(program(0xF01E))
        vm.regs.I = 0xFFFF
        vm.regs.V[0] = 2
        vm.step()
        assert vm.regs.I == 0x0001


class TestRandom:

    def test_rnd_masked(self, run_ops):
        vm = run_ops(*([0xC00F] * 20))
        assert 0 <= vm.regs.V[0] <= 0x0F

    def test_rnd_reproducible_with_seed(self):
        results = []
        for _ in range(2):
            vm = Chip8(seed=99)
            vm.load(program(0xC0FF, 0xC1FF, 0xC2FF))
            for _ in range(3):
                vm.step()
            results.append(vm.regs.V[:3])
        assert results[0] == results[1]


class TestDraw:

    def test_draw_twice_restores_and_flags(self, vm):
        vm.load(program(0xA20A, 0x6005, 0x6106, 0xD011, 0xD011, 0xFF00))
        for _ in range(4):
            vm.step()
        assert all(vm.display.get(x, 6) == PIXEL_ON for x in range(5, 13))
        assert vm.regs.V[0xF] == 0
        vm.step()
        assert all(vm.display.get(x, 6) == 0 for x in range(5, 13))
        assert vm.regs.V[0xF] == 1

    def test_font_glyph(self, run_ops):
        """Fx29 points I at the glyph and DRW renders it."""
        vm = run_ops(0x6A08, 0xFA29, 0xD005)
        assert vm.regs.I == 5 * 8
        # digit 8 is 0xF0 0x90 0xF0 0x90 0xF0
        assert [vm.display.get(x, 0) for x in range(4)] == [PIXEL_ON] * 4
        assert vm.display.get(1, 1) == 0
        assert vm.display.get(3, 1) == PIXEL_ON

    def test_cls(self, run_ops):
        vm = run_ops(0xD005, 0x00E0)
        assert vm.display.to_bytes() == bytes(64 * 32)
        assert vm.regs.pc == 0x204

    def test_draw_past_memory_faults(self, vm):
        vm.load(program(0xD005))
        vm.regs.I = 0xFFE
        with pytest.raises(MemoryFault):
            vm.step()
        assert vm.regs.pc == 0x200


class TestKeys:

    def test_skp(self, vm, keypad):
        vm.load(program(0x6007, 0xE09E))
        keypad.press(7)
        vm.step()
        vm.step()
        assert vm.regs.pc == 0x206

    def test_sknp(self, vm, keypad):
        vm.load(program(0x6007, 0xE0A1))
        vm.step()
        vm.step()
        assert vm.regs.pc == 0x206

    def test_key_wait(self, vm, keypad):
        """Fx0A holds pc until a key is reported."""
        vm.load(program(0xF30A))
        for _ in range(5):
            assert vm.step() is StepResult.AWAITING_KEY
            assert vm.regs.pc == 0x200
            assert vm.awaiting_key is True

        keypad.press(0xB)
        assert vm.step() is StepResult.EXECUTED
        assert vm.regs.V[3] == 0xB
        assert vm.regs.pc == 0x202
        assert vm.awaiting_key is False

    def test_key_wait_sees_tap_between_steps(self, vm, keypad):
        """A key pressed and released between two steps still ends the wait."""
        vm.load(program(0xF30A))
        assert vm.step() is StepResult.AWAITING_KEY
        keypad.press(0x5)
        keypad.release(0x5)
        assert vm.step() is StepResult.EXECUTED
        assert vm.regs.V[3] == 0x5
        assert vm.regs.pc == 0x202

    def test_key_wait_consumes_press(self, vm, keypad):
        """Each press satisfies one Fx0A only."""
        vm.load(program(0xF30A, 0xF40A))
        keypad.press(0x2)
        keypad.release(0x2)
        assert vm.step() is StepResult.EXECUTED
        assert vm.step() is StepResult.AWAITING_KEY
        assert vm.regs.pc == 0x202
        assert keypad.last_pressed() is None

    def test_skp_not_held(self, vm):
        vm.load(program(0x6007, 0xE09E))
        vm.step()
        vm.step()
        assert vm.regs.pc == 0x204

    def test_sknp_held(self, vm, keypad):
        vm.load(program(0x6007, 0xE0A1))
        keypad.press(7)
        vm.step()
        vm.step()
        assert vm.regs.pc == 0x204


class TestTimers:

    def test_step_leaves_timers(self, vm):
        vm.load(program(0x6009, 0xF015, 0xF018, *([0x7101] * 10)))
        for _ in range(13):
            vm.step()
        assert vm.regs.delay_timer == 9
        assert vm.regs.sound_timer == 9

    def test_tick_saturates(self, run_ops):
        vm = run_ops(0x6002, 0xF015, 0xF018)
        for _ in range(5):
            vm.tick()
        assert vm.regs.delay_timer == 0
        assert vm.regs.sound_timer == 0

    def test_read_delay(self, vm):
        vm.load(program(0x6030, 0xF015, 0xF207))
        vm.step()
        vm.step()
        vm.tick()
        vm.step()
        assert vm.regs.V[2] == 0x2F


class TestMemoryOps:

    def test_bcd(self, run_ops):
        vm = run_ops(0x60FE, 0xA300, 0xF033)
        assert vm.memory.read_block(0x300, 3) == bytes([2, 5, 4])

    def test_store_inclusive(self, run_ops):
        vm = run_ops(0x6001, 0x6102, 0x6203, 0x6304, 0xA300, 0xF255)
        assert vm.memory.read_block(0x300, 4) == bytes([1, 2, 3, 0])
        assert vm.regs.I == 0x300

    def test_load_inclusive(self, vm):
        vm.load(program(0xA300, 0xF265))
        vm.memory.write_block(0x300, [7, 8, 9, 10])
        vm.step()
        vm.step()
        assert vm.regs.V[:4] == [7, 8, 9, 0]
        assert vm.regs.I == 0x300

    def test_legacy_store_advances_i(self):
        vm = Chip8(legacy_store=True)
        vm.load(program(0xA300, 0xF255, 0xF165))
        for _ in range(3):
            vm.step()
        assert vm.regs.I == 0x305


class TestFaults:

    @pytest.mark.parametrize("opcode", [0x0000, 0x0123, 0x5011, 0x8008,
                                        0x9001, 0xE000, 0xF0FF])
    def test_unknown_instruction(self, vm, opcode):
        vm.load(program(opcode))
        with pytest.raises(UnknownInstruction) as exc:
            vm.step()
        assert exc.value.opcode == opcode
        assert exc.value.pc == 0x200
        assert vm.regs.pc == 0x200

    def test_fetch_past_end(self, vm):
        vm.load(program(0x1FFF))
        vm.step()
        with pytest.raises(MemoryFault):
            vm.step()

    def test_jump_v0_past_end(self, run_ops):
        vm = run_ops(0x60FF, 0xBFFF)
        assert vm.regs.pc == 0x10FE
        with pytest.raises(MemoryFault):
            vm.step()


class TestDisassemble:

    @pytest.mark.parametrize("opcode,text", [
        (0x00E0, "CLS"),
        (0x2345, "CALL 0x345"),
        (0x6A0F, "LD VA, 0x0F"),
        (0x8124, "ADD V1, V2"),
        (0xD125, "DRW V1, V2, 5"),
        (0xF30A, "LD V3, K"),
        (0x0123, "???"),
    ])
    def test_mnemonics(self, opcode, text):
        assert Chip8.disassemble(opcode) == text

    def test_every_entry_reachable(self):
        """No entry is shadowed by an earlier, broader one."""
        for entry in Chip8.OPCODES:
            assert Chip8.lookup(entry.match) is entry
