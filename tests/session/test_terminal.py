"""Tests for terminal tinting."""

import io

import pytest

from checkout.session.terminal import RESET_BACKGROUND, terminal_tint
from checkout.worktree.registry import PALETTE


class TtyStream(io.StringIO):
    def isatty(self):
        return True


@pytest.mark.unit
class TestTerminalTint:

    def test_sets_and_resets_background_on_tty(self):
        stream = TtyStream()
        with terminal_tint(PALETTE[0], stream=stream) as active:
            assert active
            assert stream.getvalue() == "\033]1337;SetColors=bg=1e2233\007"
        assert stream.getvalue().endswith(RESET_BACKGROUND)

    def test_resets_after_exception(self):
        stream = TtyStream()
        with pytest.raises(RuntimeError):
            with terminal_tint(PALETTE[0], stream=stream):
                raise RuntimeError("boom")
        assert stream.getvalue().endswith(RESET_BACKGROUND)

    def test_no_output_when_not_a_tty(self):
        stream = io.StringIO()
        with terminal_tint(PALETTE[0], stream=stream) as active:
            assert not active
        assert stream.getvalue() == ""

    def test_disabled(self):
        stream = TtyStream()
        with terminal_tint(PALETTE[0], enabled=False, stream=stream):
            pass
        assert stream.getvalue() == ""
