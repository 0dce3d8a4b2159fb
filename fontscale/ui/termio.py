from collections.abc import Iterator
from contextlib import contextmanager
import os
import select
import sys
import termios
import tty
from typing import ClassVar, Never, Self, TextIO


__all__ = (
    "BEL",
    "CSI",
    "OSC",
    "ST",
    "join",
    "TermIO",
)


BEL = "\a"
CSI = "\x1b["
DCS = "\x1bP"
OSC = "\x1b]"
ST = "\x1b\\"


def join(*parts: int | str) -> str:
    """Join the stringified parts of an escape sequence."""
    return "".join(str(p) for p in parts)


class TermIO:
    """
    A convenient interface for terminal I/O.

    In general, methods that write to the terminal do *not* flush the output.
    However, if a method name contains `request`, the method flushes the output
    after writing the request.
    """

    def __init__(
        self,
        input: None | TextIO = None,
        output: None | TextIO = None,
    ) -> None:
        self._input = input or sys.__stdin__
        self._output = output or sys.__stderr__
        self._cbreak_mode = False

    # ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~
    # Basic Support for Reading

    @contextmanager
    def cbreak_mode(self) -> Iterator[Self]:
        """
        Put the terminal into cbreak mode. Unlike for cooked mode, a terminal in
        cbreak mode does not wait for the end of line and forwards individual
        keystrokes. Unlike for raw more, a terminal in cbreak mode still handles
        special key combinations such as control-C for to trigger the SIGINT
        signal. An application must enter cbreak mode before issueing requests.
        Nested uses are no-ops.
        """
        if self._cbreak_mode:
            yield self
            return

        fileno = self._input.fileno()
        settings = termios.tcgetattr(fileno)
        self._cbreak_mode = True
        tty.setcbreak(fileno)
        try:
            yield self
        finally:
            termios.tcsetattr(fileno, termios.TCSADRAIN, settings)
            self._cbreak_mode = False

    def check_cbreak_mode(self) -> Self:
        """Check that the terminal is in cbreak mode."""
        if not self._cbreak_mode:
            raise AssertionError("terminal not in cbreak mode")
        return self

    def read(self, /, length: int = 3, timeout: float = 0) -> bytes:
        """Read from this terminal, which must be in cbreak mode."""
        self.check_cbreak_mode()
        fileno = self._input.fileno()
        if timeout > 0:
            ready, _, _ = select.select([fileno], [], [], timeout)
            if not ready:
                raise TimeoutError()
        return os.read(fileno, length)

    ESCAPE_TIMEOUT: ClassVar[float] = 0.5

    def read_escape(self) -> bytes:
        """
        Read an escape sequence from this terminal, which must be in cbreak
        mode.
        """
        self.check_cbreak_mode()
        buffer = bytearray()

        def next_byte() -> int:
            b = self.read(length=1, timeout=self.ESCAPE_TIMEOUT)[0]
            buffer.append(b)
            return b

        def bad_byte(b: int) -> Never:
            raise ValueError(f"unexpected key code 0x{b:02X}")

        b = next_byte()
        if b != 0x1B:
            bad_byte(b)

        # CSI Control Sequence
        # --------------------

        b = next_byte()
        if b == 0x5B:  # [
            b = next_byte()
            while 0x30 <= b <= 0x3F:
                b = next_byte()
            while 0x20 <= b <= 0x2F:
                b = next_byte()
            if 0x40 <= b <= 0x7E:
                return bytes(buffer)
            bad_byte(b)

        # DCS/SOS/OSC/PM/APC Control Sequence (Ending in ST)
        # --------------------------------------------------

        if b in (0x50, 0x58, 0x5D, 0x5E, 0x5F):  # P,X,],^,_
            b = next_byte()
            while b not in (0x07, 0x1B):
                b = next_byte()
            if b == 0x07:
                return bytes(buffer)
            b = next_byte()
            if b == 0x5C:  # \\
                return bytes(buffer)
            bad_byte(b)

        # Escape Sequence
        # ---------------

        while 0x20 <= b <= 0x2F:
            b = next_byte()
        if 0x30 <= b <= 0x7E:
            return bytes(buffer)
        bad_byte(b)

    # ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~
    # Basic Support for Writing

    def _write(self, text: str) -> Self:
        expected = len(text)
        actual = self._output.write(text)
        assert expected == actual
        return self

    def escape(self, *parts: int | str) -> Self:
        """
        Write the stringified and joined escape sequence to the terminal. Do not
        flush. This method must not be used for content, only escape sequences.
        """
        self._write(join(*parts))
        return self

    def flush(self) -> Self:
        """Flush the output."""
        self._output.flush()
        return self

    # ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~
    # Basic Support for Requests and Reports

    def raw_request(self, *query: str) -> None | bytes:
        """
        Submit the given request and return the resulting report. This method
        does flush the output. It returns `None` upon timing out. The terminal
        must be in cbreak mode.
        """
        try:
            return (
                self
                .check_cbreak_mode()
                .escape(*query)
                .flush()
                .read_escape()
            )
        except TimeoutError:
            return None

    def request_text(self, *query: str, prefix: str, suffix: str) -> None | str:
        """
        Submit the given request, convert the resulting report to Unicode, check
        the text for prefix and suffix, and return the intermediate text.
        """
        if (report := self.raw_request(*query)) is None:
            return None
        report = report.decode("utf8")
        if not report.startswith(prefix) or not report.endswith(suffix):
            return None
        return report[len(prefix) : -len(suffix)]

    def request_numbers(self, *query: str, prefix: bytes, suffix: bytes) -> list[int]:
        """
        Submit the given request, check the resulting report for prefix and
        suffix, split the intermediate bytes by semicolons, and return the parts
        converted to integers.
        """
        if (report := self.raw_request(*query)) is None:
            return []
        if not report.startswith(prefix) or not report.endswith(suffix):
            return []
        return [int(num) for num in report[len(prefix) : -len(suffix)].split(b";")]

    def request_terminal_version(self) -> None | str:
        """Request a report with the terminal version."""
        return self.request_text(CSI, ">q", prefix="".join([DCS, ">|"]), suffix=ST)

    def request_window_position(self) -> None | tuple[int, int]:
        """Request a report with the window position in (x, y) order."""
        numbers = self.request_numbers(CSI, "13t", prefix=b"\x1b[3;", suffix=b"t")
        return None if len(numbers) != 2 else (numbers[0], numbers[1])

    def request_window_size(self) -> None | tuple[int, int]:
        """Request a report with the window size in pixels in (width, height) order."""
        numbers = self.request_numbers(CSI, "14t", prefix=b"\x1b[4;", suffix=b"t")
        return None if len(numbers) != 2 else (numbers[1], numbers[0])

    # ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~
    # Fonts and Windows

    def set_font(self, code: int, font: str) -> Self:
        """
        Change a font. The code selects the font, e.g., 50 for xterm's font or
        710-713 for rxvt-unicode's normal, bold, italic, and bold-italic fonts.
        """
        return self.escape(OSC, code, ";", font, BEL)

    def move_window(self, x: int, y: int) -> Self:
        """Move the window to the given screen position."""
        return self.escape(CSI, "3;", x, ";", y, "t")

    def resize_window(self, width: int, height: int) -> Self:
        """Resize the window to the given size in pixels."""
        return self.escape(CSI, "4;", height, ";", width, "t")
