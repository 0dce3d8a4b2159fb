"""
The font scaler plugin.

A host, i.e., a terminal emulator or a stand-in, drives the plugin through three
callbacks:

  * `on_init()` reads the current fonts from the host.
  * `on_user_command()` handles the `font:increment` and `font:decrement`
    commands by stepping all fonts, pushing them to the host, and persisting
    them in the resource database.
  * `on_configure_notify()` handles window moves by looking up the DPI at the
    window's center and, if it changed, pushing DPI-scaled fonts to the host.

The plugin keeps its fonts at the baseline DPI. Only the fonts pushed to the
host are scaled, so persisted fonts never depend on the current monitor.
"""

from collections.abc import Callable
import dataclasses
import logging
import re
from typing import Protocol

from .config import Config
from .dpi import locate_dpi, UNKNOWN_DPI
from .font import FontDescriptor, FontRole
from .ui.termio import BEL, OSC, join
from .ui.terminal import Terminal
from .xrdb import persist, ResourceStore


__all__ = (
    'ConfigureEvent',
    'FontScaler',
    'FontState',
    'Host',
)


_logger = logging.getLogger(__name__)


_COMMAND = re.compile(r'font:(in|de)crement')


class Host(Protocol):
    """The services a host provides to the plugin."""

    def resource(self, key: str) -> None | str:
        ...

    def set_resource(self, key: str, value: str) -> None:
        ...

    def to_screen(self, x: int, y: int) -> tuple[int, int]:
        ...

    def escape(self, sequence: str) -> None:
        ...

    def move_resize(self, x: int, y: int, width: int, height: int) -> None:
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class ConfigureEvent:
    """A window's new geometry."""

    x: int
    y: int
    width: int
    height: int


@dataclasses.dataclass(slots=True)
class FontState:
    fonts: dict[FontRole, FontDescriptor]
    center: tuple[int, int]
    dpi: float


class FontScaler:
    """A font scaler plugin instance."""

    def __init__(
        self,
        host: Host,
        store: ResourceStore,
        config: None | Config = None,
        terminal: None | Terminal = None,
        locate: Callable[[int, int], float] = locate_dpi,
    ) -> None:
        self._host = host
        self._store = store
        self._config = config or Config()
        self._terminal = terminal or Terminal.default()
        self._locate = locate
        self._state = FontState(
            {role: FontDescriptor(()) for role in FontRole},
            (0, 0),
            self._config.baseline_dpi,
        )

    @property
    def state(self) -> FontState:
        return self._state

    @property
    def config(self) -> Config:
        return self._config

    # ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~
    # Host Callbacks

    def on_init(self) -> None:
        self._state = FontState({}, (0, 0), self._config.baseline_dpi)
        self.reload()

    def reload(self) -> None:
        """Re-read the fonts from the host, keeping window center and DPI."""
        self._state.fonts = {
            role: FontDescriptor.of(self._host.resource(role.key)) for role in FontRole
        }
        _logger.info('primary font is "%s"', self._state.fonts[FontRole.PRIMARY])

    def on_user_command(self, command: str) -> bool:
        """
        Handle `font:increment` and `font:decrement`. Return whether the command
        was handled. All other commands are ignored.
        """
        if (match := _COMMAND.fullmatch(command)) is None:
            return False
        self.resize(1 if match.group(1) == 'in' else -1)
        return True

    def on_configure_notify(self, event: ConfigureEvent) -> None:
        if self.update_dpi(event):
            self.push()
            self._host.move_resize(event.x, event.y, event.width, event.height)

    def update_dpi(self, event: ConfigureEvent) -> bool:
        """
        Track the window's center and the DPI of the monitor containing it.
        Return whether the DPI changed. Fonts are not pushed.
        """
        if not self._config.dpi_scaling:
            return False

        center = self._host.to_screen(event.width // 2, event.height // 2)
        if center == self._state.center:
            return False
        self._state.center = center

        dpi = self._locate(*center)
        if dpi == UNKNOWN_DPI or dpi == self._state.dpi:
            return False

        _logger.info('DPI changed from %.1f to %.1f', self._state.dpi, dpi)
        self._state.dpi = dpi
        return True

    # ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~
    # Operations

    def resize(self, delta: int) -> None:
        """Step all fonts by the delta, then push and persist them."""
        restriction = self._config.restriction
        fonts = self._state.fonts
        for role in FontRole:
            fonts[role] = fonts[role].step(delta, restriction)
        self.push()
        self.persist()

    def scaled_fonts(self) -> dict[FontRole, FontDescriptor]:
        """Scale the fonts to the current DPI."""
        dpi = self._state.dpi if self._config.dpi_scaling else self._config.baseline_dpi
        return {
            role: font.scale(dpi, self._config.baseline_dpi)
            for role, font in self._state.fonts.items()
        }

    def push(self) -> None:
        """Update the host's fonts and make it redraw with the primary font."""
        for role, font in self.scaled_fonts().items():
            self._host.set_resource(role.key, str(font))

        font = self._host.resource(FontRole.PRIMARY.key)
        code = self._terminal.font_code(FontRole.PRIMARY)
        if not font or code is None:
            return
        self._host.escape(join(OSC, code, ';', font, BEL))

    def persist(self) -> None:
        persist(self._state.fonts, self._store, self._config.resource_class)
