"""Tint the terminal background with a worktree's palette color."""

import sys
from contextlib import contextmanager

SET_BACKGROUND = "\033]1337;SetColors=bg={}\007"
RESET_BACKGROUND = "\033]111\007"


@contextmanager
def terminal_tint(color, enabled=True, stream=None):
    """Set the background to ``color`` for the duration of the block.

    Only writes escape sequences when ``stream`` is a terminal.
    """
    if stream is None:
        stream = sys.stdout
    active = enabled and stream.isatty()
    if active:
        stream.write(SET_BACKGROUND.format(color.hex))
        stream.flush()
    try:
        yield active
    finally:
        if active:
            stream.write(RESET_BACKGROUND)
            stream.flush()
