"""
A host for running the font scaler outside of a terminal's plugin runtime.

`TerminalHost` talks to the terminal it runs in through escape sequences: It
changes fonts with OSC sequences and queries as well as restores the window
geometry with xterm's window operations. Its resources come from the live
resource database.
"""

import logging

from .font import FontRole
from .plugin import ConfigureEvent
from .ui.termio import TermIO
from .ui.terminal import Terminal
from .xrdb import ResourceStore


_logger = logging.getLogger(__name__)


class TerminalHost:
    """A host backed by the current terminal and the live resource database."""

    def __init__(self, termio: TermIO, terminal: Terminal, store: ResourceStore) -> None:
        self._termio = termio
        self._terminal = terminal
        self._store = store
        self._resources: dict[str, str] = {}
        self.reload()

    def reload(self) -> None:
        """Replace the resources with the ones currently in the database."""
        prefixes = (f'{self._terminal.resource_class}.', f'{self._terminal.resource_class}*')
        resources = {}
        for name, value in self._store.query().items():
            for prefix in prefixes:
                if name.startswith(prefix):
                    resources[name[len(prefix):]] = value
        self._resources = resources

    def resource(self, key: str) -> None | str:
        return self._resources.get(key)

    def set_resource(self, key: str, value: str) -> None:
        self._resources[key] = value

        role = FontRole(key)
        # The primary font takes effect with the redraw escape
        if role is FontRole.PRIMARY or not value:
            return
        if (code := self._terminal.font_code(role)) is not None:
            self._termio.set_font(code, value).flush()

    def escape(self, sequence: str) -> None:
        self._termio.escape(sequence).flush()

    def to_screen(self, x: int, y: int) -> tuple[int, int]:
        with self._termio.cbreak_mode():
            position = self._termio.request_window_position()
        if position is None:
            _logger.warning('%s did not report its window position', self._terminal)
            return x, y
        return position[0] + x, position[1] + y

    def move_resize(self, x: int, y: int, width: int, height: int) -> None:
        self._termio.move_window(x, y).resize_window(width, height).flush()

    def geometry(self) -> None | ConfigureEvent:
        """Request the window's geometry."""
        with self._termio.cbreak_mode():
            position = self._termio.request_window_position()
            size = self._termio.request_window_size()
        if position is None or size is None:
            return None
        return ConfigureEvent(*position, *size)
