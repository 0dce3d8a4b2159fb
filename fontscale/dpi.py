"""
Determine the DPI of the monitor showing a given screen point.

The monitors and their geometry come from `xrandr --query`, which reports
connected outputs as lines like

    HDMI-1 connected 1080x1920+1920+0 left (normal left inverted right x axis y axis) 527mm x 296mm

The pixel dimensions and offset describe the output's (rotated) bounding box on
the screen, whereas the physical dimensions are always those of the unrotated
panel. Hence the DPI computation swaps the physical dimensions for outputs
rotated left or right. It only considers the width.
"""

from collections.abc import Iterable, Sequence
import dataclasses
import logging
import re
import subprocess
from typing import Self

from .config import MM_TO_INCH


__all__ = (
    'UNKNOWN_DPI',
    'Output',
    'parse_outputs',
    'query_outputs',
    'locate_dpi',
)


_logger = logging.getLogger(__name__)


UNKNOWN_DPI = 0.0


_OUTPUT = re.compile(
    r"""
        ^(?P<name>\S+) \s+ connected
        (?: \s+ primary )?
        \s+ (?P<width>\d+) x (?P<height>\d+) (?P<x>[+-]\d+) (?P<y>[+-]\d+)
        (?: \s+ (?P<rotation>normal|left|inverted|right) )?
        (?: \s+ (?:X|Y|X\ and\ Y) \s+ axis )?
        \s+ \( [^)]* \)
        \s+ (?P<width_mm>\d+) mm \s+ x \s+ (?P<height_mm>\d+) mm
    """,
    re.VERBOSE,
)


@dataclasses.dataclass(frozen=True, slots=True)
class Output:
    """A connected display output."""

    name: str
    width: int
    height: int
    x: int
    y: int
    rotation: str
    width_mm: int
    height_mm: int

    @classmethod
    def parse(cls, line: str) -> None | Self:
        """Parse an `xrandr` line or return `None` if it isn't a connected output."""
        if (match := _OUTPUT.match(line)) is None:
            return None
        return cls(
            match['name'],
            int(match['width']),
            int(match['height']),
            int(match['x']),
            int(match['y']),
            match['rotation'] or 'normal',
            int(match['width_mm']),
            int(match['height_mm']),
        )

    def is_sideways(self) -> bool:
        return self.rotation in ('left', 'right')

    def contains(self, x: int, y: int) -> bool:
        return (
            self.x <= x < self.x + self.width
            and self.y <= y < self.y + self.height
        )

    @property
    def dpi(self) -> float:
        """The horizontal DPI or `UNKNOWN_DPI` for outputs without physical size."""
        width_mm = self.height_mm if self.is_sideways() else self.width_mm
        if width_mm <= 0:
            return UNKNOWN_DPI
        return self.width / (width_mm * MM_TO_INCH)


def parse_outputs(lines: Iterable[str]) -> list[Output]:
    """Parse the connected outputs from `xrandr --query` lines."""
    return [output for line in lines if (output := Output.parse(line)) is not None]


def query_outputs(program: str = 'xrandr') -> list[Output]:
    """
    Enumerate the connected outputs. This function is best effort: If `xrandr`
    is missing or fails, it logs a warning and returns no outputs.
    """
    try:
        result = subprocess.run(
            [program, '--query'],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            encoding='utf8',
        )
    except OSError as x:
        _logger.warning('unable to run "%s": %s', program, x)
        return []

    if result.returncode != 0:
        _logger.warning('"%s" exited with status %d', program, result.returncode)
    return parse_outputs(result.stdout.splitlines())


def locate_dpi(x: int, y: int, outputs: None | Sequence[Output] = None) -> float:
    """
    Determine the DPI of the first output containing the screen point. If no
    output contains the point, return `UNKNOWN_DPI`.
    """
    if outputs is None:
        outputs = query_outputs()
    for output in outputs:
        if output.contains(x, y):
            _logger.info(
                'point %d,%d is on output %s with %.1f DPI', x, y, output.name, output.dpi
            )
            return output.dpi
    return UNKNOWN_DPI
