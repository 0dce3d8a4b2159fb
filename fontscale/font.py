"""
Font descriptors and their transformations.

A font descriptor is the string rxvt-unicode and friends accept for their font
resources: a comma-separated list of fonts, each of them colon-delimited, e.g.,
`xft:Monaco:pixelsize=12:antialias=true,xft:Symbola:pixelsize=12`. This module
represents descriptors as `FontDescriptor`, which keeps the original segments
verbatim and only ever rewrites the value of `pixelsize=` segments. Two
transformations produce new descriptors:

  * `FontDescriptor.step()` increments or decrements the pixel size of the
    first font, leaving fallback fonts alone. Fonts of a
    restricted family, i.e., Monaco by default, only step through a fixed list
    of sizes, since the bitmap variants only have full Unicode coverage at
    those sizes.
  * `FontDescriptor.scale()` scales the pixel size by the ratio of the current
    DPI to the baseline DPI. It multiplies before dividing and truncates the
    result, which fixes the rounding behavior.
"""

from collections.abc import Callable, Sequence
import dataclasses
import enum
import re
from typing import Self


__all__ = (
    'FontRole',
    'FontDescriptor',
    'SizeRestriction',
    'median',
)


class FontRole(enum.Enum):
    """The font roles of a terminal, in persistence order."""

    PRIMARY = 'font'
    INPUT_METHOD = 'imFont'
    BOLD = 'boldFont'
    ITALIC = 'italicFont'
    BOLD_ITALIC = 'boldItalicFont'

    @property
    def key(self) -> str:
        """The resource key for this role."""
        return self.value


def median(sizes: Sequence[int]) -> int:
    """
    Determine the median of the sizes. The result is the mean of the two
    central elements truncated to an integer. For an odd number of sizes, that
    simply is the middle element.
    """
    if not sizes:
        raise ValueError('unable to determine median of no sizes')
    ordered = sorted(sizes)
    count = len(ordered)
    return (ordered[(count - 1) // 2] + ordered[count // 2]) // 2


@dataclasses.dataclass(frozen=True, slots=True)
class SizeRestriction:
    """A font family that only supports the given, monotonic list of sizes."""

    family: str
    sizes: tuple[int, ...]

    def applies_to(self, family: str) -> bool:
        return family.casefold().startswith(self.family.casefold())


_PIXEL_SIZE = re.compile(r'pixelsize=(-?\d+)')
_BACKENDS = ('xft', 'x')


@dataclasses.dataclass(frozen=True, slots=True)
class FontDescriptor:
    """
    An immutable font descriptor, i.e., a comma-separated list of fonts, each a
    sequence of colon-delimited segments. The first font is the one the
    terminal prefers; the others are fallbacks.
    """

    fonts: tuple[tuple[str, ...], ...]

    @classmethod
    def of(cls, text: None | str) -> Self:
        """Parse the font descriptor. `None` results in an empty descriptor."""
        if not text:
            return cls(())
        return cls(tuple(tuple(font.split(':')) for font in text.split(',')))

    def __str__(self) -> str:
        return ','.join(':'.join(segments) for segments in self.fonts)

    def is_empty(self) -> bool:
        return len(self.fonts) == 0

    @property
    def segments(self) -> tuple[str, ...]:
        """The segments of the first font."""
        return self.fonts[0] if self.fonts else ()

    @property
    def backend(self) -> None | str:
        """The rendering backend tag, if the first font has one."""
        segments = self.segments
        if len(segments) > 1 and segments[0].casefold() in _BACKENDS:
            return segments[0]
        return None

    @property
    def family(self) -> str:
        if not self.segments:
            return ''
        return self.segments[1] if self.backend is not None else self.segments[0]

    @property
    def pixel_size(self) -> None | int:
        """The value of the first font's first `pixelsize=` segment or `None`."""
        for segment in self.segments:
            if (match := _PIXEL_SIZE.fullmatch(segment)) is not None:
                return int(match.group(1))
        return None

    def _replace_sizes(self, update: Callable[[int], int], *, first: bool) -> Self:
        fonts = []
        for font_index, segments in enumerate(self.fonts):
            if first and font_index > 0:
                fonts.append(segments)
                continue

            new_segments = list(segments)
            for index, segment in enumerate(segments):
                if (match := _PIXEL_SIZE.fullmatch(segment)) is None:
                    continue

                size = int(match.group(1))
                if (new_size := update(size)) != size:
                    new_segments[index] = f'pixelsize={new_size}'
                if first:
                    break
            fonts.append(tuple(new_segments))

        if tuple(fonts) == self.fonts:
            return self
        return type(self)(tuple(fonts))

    def with_pixel_size(self, size: int) -> Self:
        """Replace the first font's first pixel size."""
        return self._replace_sizes(lambda _: size, first=True)

    def step(self, delta: int, restriction: None | SizeRestriction = None) -> Self:
        """
        Step the first font's pixel size by the signed delta. If the restriction
        applies to that font's family, the size moves through the restriction's
        list of sizes instead, without ever moving past either end. A size that
        is not on that list resets to the list's median. Fallback fonts keep
        their sizes.
        """
        if (size := self.pixel_size) is None:
            return self

        if restriction is None or not restriction.applies_to(self.family):
            return self.with_pixel_size(size + delta)

        sizes = restriction.sizes
        if size not in sizes:
            return self.with_pixel_size(median(sizes))

        index = sizes.index(size) + delta
        if not (0 <= index < len(sizes)):
            return self
        return self.with_pixel_size(sizes[index])

    def scale(self, dpi: float, baseline: float) -> Self:
        """
        Scale all pixel sizes of all fonts by `dpi / baseline`, truncating
        toward zero.
        """
        return self._replace_sizes(lambda size: int(size * dpi / baseline), first=False)
