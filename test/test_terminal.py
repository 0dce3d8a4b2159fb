import io
import os
import sys
import unittest
from unittest import mock

from fontscale.font import FontRole
from fontscale.ui.termio import BEL, CSI, OSC, join, TermIO
from fontscale.ui.terminal import Terminal


class NotATerminal:
    """A class faking just enough of a stream's interface."""

    def isatty(self) -> bool:
        return True

    def fileno(self) -> int:
        return sys.__stdout__.fileno()

    def write(self, s: str) -> int:
        return len(s)

    def flush(self) -> None:
        pass


class TestTermIO(unittest.TestCase):

    def test_output(self) -> None:
        output = io.StringIO()
        t = TermIO(NotATerminal(), output)  # type: ignore

        t.set_font(710, 'xft:Monaco:pixelsize=13').flush()
        self.assertEqual(output.getvalue(), join(OSC, '710;xft:Monaco:pixelsize=13', BEL))

        output.seek(0)
        output.truncate()
        t.move_window(1920, 40).resize_window(800, 600)
        self.assertEqual(output.getvalue(), join(CSI, '3;1920;40t', CSI, '4;600;800t'))

    def test_requests_need_cbreak_mode(self) -> None:
        t = TermIO(NotATerminal(), io.StringIO())  # type: ignore
        with self.assertRaises(AssertionError):
            t.request_window_position()


class TestTerminal(unittest.TestCase):

    def test_registry(self) -> None:
        # Build the registry from scratch instead of reusing a cached one.
        with mock.patch.object(Terminal, '_registry', None):
            registry = Terminal.registry()
            self.assertEqual(
                sorted(registry), ['rxvt', 'rxvt-unicode', 'urxvt', 'xterm']
            )
            self.assertIs(Terminal.registry(), registry)

        urxvt = Terminal.resolve('URxvt')
        assert urxvt is not None
        self.assertIs(Terminal.resolve('rxvt-unicode'), urxvt)
        self.assertIs(Terminal.resolve('urxvt'), urxvt)
        self.assertIs(Terminal.resolve('rxvt'), urxvt)
        self.assertIs(Terminal.default(), urxvt)
        self.assertEqual(urxvt.resource_class, 'URxvt')
        self.assertIsNone(Terminal.resolve('Hyper'))
        self.assertEqual([t.name for t in Terminal.all()], ['URxvt', 'XTerm'])

    def test_font_codes(self) -> None:
        urxvt = Terminal.default()
        self.assertEqual(
            [urxvt.font_code(role) for role in FontRole], [710, None, 711, 712, 713]
        )
        xterm = Terminal.resolve('xterm')
        assert xterm is not None
        self.assertEqual(xterm.font_code(FontRole.PRIMARY), 50)
        self.assertIsNone(xterm.font_code(FontRole.BOLD))

    def test_from_env(self) -> None:
        with mock.patch.dict(os.environ, {'TERM': 'rxvt-unicode-256color'}):
            self.assertIs(Terminal.from_env(), Terminal.default())
        with mock.patch.dict(os.environ, {'TERM': 'xterm-256color'}):
            self.assertIs(Terminal.from_env(), Terminal.resolve('xterm'))
            self.assertIs(Terminal.current(), Terminal.resolve('xterm'))
        with mock.patch.dict(os.environ, {'TERM': 'screen'}):
            self.assertIsNone(Terminal.from_env())
