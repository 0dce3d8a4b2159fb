from collections.abc import Iterator
from contextlib import contextmanager
import io
from typing import Self
import unittest

from fontscale.host import TerminalHost
from fontscale.plugin import ConfigureEvent
from fontscale.ui.termio import BEL, CSI, OSC, join, TermIO
from fontscale.ui.terminal import Terminal


class ScriptedTermIO(TermIO):
    """Terminal I/O with canned window reports and captured output."""

    def __init__(
        self,
        position: None | tuple[int, int] = (100, 50),
        size: None | tuple[int, int] = (800, 600),
    ) -> None:
        self.output = io.StringIO()
        super().__init__(io.StringIO(), self.output)
        self.position = position
        self.size = size

    @contextmanager
    def cbreak_mode(self) -> Iterator[Self]:
        yield self

    def request_window_position(self) -> None | tuple[int, int]:
        return self.position

    def request_window_size(self) -> None | tuple[int, int]:
        return self.size


class ResourceSource:

    def __init__(self, resources: dict[str, str]) -> None:
        self.resources = resources

    def query(self) -> dict[str, str]:
        return self.resources


class TestTerminalHost(unittest.TestCase):

    def setUp(self) -> None:
        self.termio = ScriptedTermIO()
        self.source = ResourceSource({
            'URxvt.font': 'xft:Monaco:pixelsize=13',
            'URxvt*boldFont': 'xft:Monaco:bold:pixelsize=13',
            'XTerm.font': '9x15',
            'URxvt.scrollBar': 'false',
        })
        self.host = TerminalHost(
            self.termio, Terminal.default(), self.source  # type: ignore
        )

    def test_resources(self) -> None:
        self.assertEqual(self.host.resource('font'), 'xft:Monaco:pixelsize=13')
        self.assertEqual(self.host.resource('boldFont'), 'xft:Monaco:bold:pixelsize=13')
        self.assertIsNone(self.host.resource('italicFont'))

    def test_set_resource(self) -> None:
        self.host.set_resource('font', 'xft:Monaco:pixelsize=15')
        self.host.set_resource('imFont', 'xft:Monaco:pixelsize=15')
        self.host.set_resource('boldFont', 'xft:Monaco:bold:pixelsize=15')
        self.host.set_resource('italicFont', '')
        self.assertEqual(self.host.resource('font'), 'xft:Monaco:pixelsize=15')
        self.assertEqual(
            self.termio.output.getvalue(),
            join(OSC, '711;xft:Monaco:bold:pixelsize=15', BEL),
        )

    def test_escape(self) -> None:
        self.host.escape(join(OSC, '710;9x15', BEL))
        self.assertEqual(self.termio.output.getvalue(), join(OSC, '710;9x15', BEL))

    def test_geometry(self) -> None:
        self.assertEqual(self.host.to_screen(400, 300), (500, 350))
        self.assertEqual(self.host.geometry(), ConfigureEvent(100, 50, 800, 600))

        self.host.move_resize(100, 50, 800, 600)
        self.assertEqual(
            self.termio.output.getvalue(), join(CSI, '3;100;50t', CSI, '4;600;800t')
        )

        self.termio.position = None
        self.assertIsNone(self.host.geometry())
        with self.assertLogs('fontscale.host', 'WARNING'):
            self.assertEqual(self.host.to_screen(400, 300), (400, 300))

    def test_reload(self) -> None:
        self.host.set_resource('font', 'xft:Monaco:pixelsize=15')
        self.host.reload()
        self.assertEqual(self.host.resource('font'), 'xft:Monaco:pixelsize=13')

        self.source.resources = {'URxvt.font': 'xft:Monaco:pixelsize=16'}
        self.host.reload()
        self.assertEqual(self.host.resource('font'), 'xft:Monaco:pixelsize=16')
        self.assertIsNone(self.host.resource('boldFont'))
