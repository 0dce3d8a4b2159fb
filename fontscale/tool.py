"""
fontscale's command line tool.
"""

import argparse
from collections.abc import Sequence
from contextlib import AbstractContextManager, suppress
import logging
from pathlib import Path
import sys
import termios
from textwrap import dedent
import time
import traceback
from types import TracebackType

from .config import BASE_RESOURCE_FILE, BASELINE_DPI, Config
from .dpi import query_outputs
from .host import TerminalHost
from .plugin import FontScaler
from .ui.termio import TermIO
from .ui.terminal import Terminal
from .xrdb import ResourceError, XrdbStore
from . import __version__


ACTIONS = (
    'increment',
    'decrement',
    'rescale',
    'watch',
    'show',
    'monitors',
)

TICKS_PER_SECOND = 4

# Requesting the window geometry fails outside of a terminal
WINDOW_ERRORS = (OSError, termios.error)


_logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------------------


class UserError(Exception):
    """
    An error indicating invalid user input or an unusable environment. When code
    raises this error, it probably is *not* helpful to print an exception trace.
    """


class user_error(AbstractContextManager['user_error']):
    """
    A context manager to turn one or more exceptions into a user error. If the
    context manager tries to exit with one of the listed exception types, it
    instead raises a `UserError` with the message `msg.format(*args, **kwargs)`.
    """

    def __init__(
        self,
        exc_types: type[BaseException] | Sequence[type[BaseException]],
        msg: str,
        *args: object,
        **kwargs: object,
    ) -> None:
        if isinstance(exc_types, type):
            exc_types = (exc_types,)

        self._exc_types = tuple(exc_types)
        self._msg = msg
        self._args = args
        self._kwargs = kwargs

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        _: TracebackType | None,
    ) -> None:
        if exc_type is not None and issubclass(exc_type, self._exc_types):
            msg = self._msg.format(*self._args, **self._kwargs)
            raise UserError(msg) from exc_value


# --------------------------------------------------------------------------------------


def width_limited_formatter(prog: str) -> argparse.HelpFormatter:
    return argparse.RawTextHelpFormatter(prog, width=70)


def normalize_action(action: str) -> str:
    """Accept plugin commands such as `font:increment` as actions, too."""
    return action.removeprefix('font:')


def configure_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='fontscale',
        description='Resize the terminal font and keep it at the same size\n'
        'across monitors of different pixel density.',
        epilog=dedent("""
            Actions:

              - `increment` and `decrement` step the font size and persist
                the new size in the resource database and base file.
              - `rescale` scales the font to the DPI of the monitor under
                the window's center.
              - `watch` keeps rescaling as the window moves until you hit
                control-C.
              - `show` displays the current fonts.
              - `monitors` displays the connected monitors and their DPI.

            The tool changes the fonts of the terminal it runs in. Hence,
            bind increment and decrement to keys through your shell, e.g.,
            with `bind -x '"\\e+": fontscale increment'` in bash.
        """),
        formatter_class=width_limited_formatter,
    )

    parser.add_argument(
        'action',
        metavar='ACTION',
        type=normalize_action,
        choices=ACTIONS,
        nargs='?',
        help=f'one of {", ".join(ACTIONS)}',
    )

    font_group = parser.add_argument_group('fonts')
    font_group.add_argument(
        '--resource-file',
        type=Path,
        default=BASE_RESOURCE_FILE,
        help=f'use resource file as base for persistence\n(default: {BASE_RESOURCE_FILE})',
    )
    font_group.add_argument(
        '--terminal',
        help='assume terminal instead of detecting it\n'
        f'({", ".join(t.name for t in Terminal.all())})',
    )
    font_group.add_argument(
        '--any-size',
        action='store_false',
        dest='unicode_restrict',
        help='do not restrict Monaco to sizes with full Unicode coverage',
    )

    dpi_group = parser.add_argument_group('monitors')
    dpi_group.add_argument(
        '--baseline-dpi',
        type=int,
        default=BASELINE_DPI,
        help=f'use DPI as baseline for font sizes (default: {BASELINE_DPI})',
    )
    dpi_group.add_argument(
        '--no-dpi-scaling',
        action='store_false',
        dest='dpi_scaling',
        help='do not scale fonts to the monitor DPI',
    )

    about_group = parser.add_argument_group('about this tool')
    about_group.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='use verbose mode to enable instructive logging',
    )
    about_group.add_argument(
        '--version', '-V',
        action='store_true',
        help='display the tool version and exit',
    )

    return parser


# --------------------------------------------------------------------------------------


def run(arguments: Sequence[str]) -> int:
    parser = configure_parser()
    options = parser.parse_args(arguments[1:])

    logging.basicConfig(
        format='[%(levelname)s] %(name)s: %(message)s',
        level=logging.INFO if options.verbose else logging.WARNING,
    )

    try:
        return process(options, parser)
    except UserError as x:
        print(f'Error: {x.args[0]}', file=sys.stderr)
        if x.__cause__ is not None and x.__cause__.args:
            print(f'In particular: {x.__cause__.args[0]}', file=sys.stderr)
        return 1
    except Exception as x:
        print(
            'fontscale encountered an unexpected error. For details, please see\n'
            'the exception trace below.\n',
            file=sys.stderr,
        )
        print(''.join(traceback.format_exception(x)), file=sys.stderr)
        return 1


def process(options: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    # ------------------------------------------------ Perform tool house keeping
    if options.version:
        print(f'fontscale {__version__}')
        return 0
    if options.action is None:
        parser.print_usage(sys.stderr)
        raise UserError('no action given')

    if options.action == 'monitors':
        show_monitors()
        return 0

    # ------------------------------------------------------- Set up the plugin
    if options.terminal is None:
        terminal = Terminal.current()
    elif (terminal := Terminal.resolve(options.terminal)) is None:
        raise UserError(f'"{options.terminal}" is not a supported terminal')

    with user_error(ValueError, 'invalid configuration'):
        config = Config.from_options(options, terminal.resource_class)

    termio = TermIO()
    store = XrdbStore(config.base_resource_file)
    host = TerminalHost(termio, terminal, store)
    scaler = FontScaler(host, store, config, terminal)
    scaler.on_init()

    perform(options.action, host, scaler)
    return 0


def perform(action: str, host: TerminalHost, scaler: FontScaler) -> None:
    """Run one of the actions that need a font scaler."""
    if action == 'show':
        for role, font in scaler.state.fonts.items():
            print(f'{role.key:>15}: {font}')
        return

    with user_error(WINDOW_ERRORS, 'unable to query window geometry from terminal'):
        if action in ('increment', 'decrement'):
            # Push fonts scaled for the monitor the window is on
            if scaler.config.dpi_scaling:
                if (event := host.geometry()) is None:
                    _logger.warning('terminal did not report its window geometry')
                else:
                    scaler.update_dpi(event)
            with user_error(ResourceError, 'unable to persist fonts'):
                scaler.on_user_command(f'font:{action}')
        elif action == 'rescale':
            if (event := host.geometry()) is None:
                raise UserError('terminal did not report its window geometry')
            scaler.on_configure_notify(event)
        else:
            watch(host, scaler)


def watch(host: TerminalHost, scaler: FontScaler) -> None:
    """
    Deliver a configure event whenever the window geometry changes. Before
    delivering the event, re-read the fonts, since another invocation may have
    stepped them in the meantime.
    """
    previous = None
    with suppress(KeyboardInterrupt):
        while True:
            event = host.geometry()
            if event is not None and event != previous:
                host.reload()
                scaler.reload()
                scaler.on_configure_notify(event)
                # Restoring the geometry must not count as another change
                previous = host.geometry() or event
            time.sleep(1 / TICKS_PER_SECOND)


def show_monitors() -> None:
    outputs = query_outputs()
    if not outputs:
        raise UserError('xrandr reported no connected monitors')
    for output in outputs:
        print(
            f'{output.name:<10} {output.width:>5}×{output.height:<5} '
            f'at {output.x:+d}{output.y:+d}  {output.rotation:<8} '
            f'{output.width_mm}×{output.height_mm}mm  {output.dpi:6.1f} DPI'
        )
