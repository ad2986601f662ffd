"""Command line entry point and host loop."""
from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Optional, Sequence, TextIO

from .constants import EXIT_FAULT, EXIT_LOAD_ERROR, EXIT_OK, TIMER_HZ
from .cpu import Chip8, StepResult
from .errors import Chip8Error, LoadError, QuitRequested
from .keypad import KeyState
from .loader import read_program

logger = logging.getLogger(__name__)


class TimerClock:
    """Turns elapsed wall time into whole 60 Hz timer ticks.

    The remainder carries over between calls so the timers keep their rate
    no matter how irregular the host frames are.
    """

    def __init__(self, hz: int = TIMER_HZ, now: Optional[float] = None):
        self.period = 1.0 / hz
        self.last = time.perf_counter() if now is None else now

    def due(self, now: float) -> int:
        ticks = int((now - self.last) // self.period)
        if ticks > 0:
            self.last += ticks * self.period
        return ticks


def report_fault(vm: Chip8, exc: Exception, stream: TextIO = None):
    stream = stream or sys.stderr
    logger.error("Fatal: %s", exc)
    print("Dumping registers:", file=stream)
    print(vm.dump(), file=stream)


def run(vm: Chip8, frontend, clock: int = 700, timers: Optional[TimerClock] = None,
        stream: TextIO = None) -> int:
    """Drive `vm` until the user quits or the program faults."""
    cycles_per_frame = max(1, clock // TIMER_HZ)
    timers = timers or TimerClock()
    try:
        while True:
            frontend.handle_events()

            # Run CPU cycles for this frame
            for _ in range(cycles_per_frame):
                if vm.step() is StepResult.AWAITING_KEY:
                    break

            # Timer update, one tick per elapsed 1/60 s
            for _ in range(timers.due(time.perf_counter())):
                vm.tick()

            if vm.display.dirty:
                frontend.render()

            # Cap UI thread to ~60 FPS
            frontend.tick(TIMER_HZ)
    except KeyboardInterrupt:
        print("\nExiting.")
        return EXIT_OK
    except QuitRequested:
        logger.info("Quit after %d cycles", vm.cycles)
        return EXIT_OK
    except Chip8Error as e:
        report_fault(vm, e, stream)
        return EXIT_FAULT
    finally:
        frontend.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8vm", description="CHIP-8 virtual machine")
    parser.add_argument("rom", help="Path to CHIP-8 ROM")
    parser.add_argument("--scale", type=int, default=15,
                        help="Pixel scale factor (default 15)")
    parser.add_argument("--clock", type=int, default=700,
                        help="CPU clock in Hz (default 700)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the RND instruction")
    parser.add_argument("--legacy-store", action="store_true",
                        help="Use original FX55/FX65 quirk (I increments)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log every executed instruction")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s]:  %(message)s",
        stream=sys.stdout,
    )

    try:
        program = read_program(args.rom)
    except LoadError as e:
        logger.error("%s", e)
        return EXIT_LOAD_ERROR

    vm = Chip8(legacy_store=args.legacy_store, seed=args.seed, keypad=KeyState())
    vm.load(program)

    import pygame
    from .frontend import Frontend

    pygame.init()
    pygame.display.set_allow_screensaver(True)
    frontend = Frontend(vm.display, vm.keypad, scale=args.scale)
    return run(vm, frontend, clock=args.clock)
