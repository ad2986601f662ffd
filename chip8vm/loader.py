"""Reading program images from disk.

ROMs are raw, headerless byte strings loaded verbatim at 0x200. Size is
checked here, before a machine exists, so a rejected file never touches VM
state.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from .constants import MAX_PROGRAM_SIZE
from .errors import LoadError, ProgramTooLarge

logger = logging.getLogger(__name__)


def check_size(program: bytes, path: str | None = None) -> bytes:
    if len(program) > MAX_PROGRAM_SIZE:
        raise ProgramTooLarge(len(program), MAX_PROGRAM_SIZE, path)
    return program


def read_program(path: Union[str, Path]) -> bytes:
    path = Path(path)
    try:
        with open(path, "rb") as f:
            # one extra byte is enough to detect an oversize file
            data = f.read(MAX_PROGRAM_SIZE + 1)
    except OSError as e:
        raise LoadError(f"Cannot read ROM {path}: {e.strerror or e}", str(path)) from e
    check_size(data, str(path))
    logger.debug("Read %d bytes from %s", len(data), path)
    return data
