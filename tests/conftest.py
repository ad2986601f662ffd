import pytest

from chip8vm import Chip8, KeyState


def program(*words: int) -> bytes:
    """Assemble 16-bit opcodes into big-endian bytes."""
    out = bytearray()
    for w in words:
        out += bytes(((w >> 8) & 0xFF, w & 0xFF))
    return bytes(out)


@pytest.fixture
def keypad():
    return KeyState()


@pytest.fixture
def vm(keypad):
    return Chip8(seed=1234, keypad=keypad)


@pytest.fixture
def run_ops(vm):
    """Load opcodes at 0x200 and step through all of them."""
    def _run(*words, steps=None):
        vm.load(program(*words))
        for _ in range(len(words) if steps is None else steps):
            vm.step()
        return vm
    return _run
