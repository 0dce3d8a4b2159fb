from collections.abc import Iterator
import dataclasses
import os
import sys
from typing import ClassVar, Self

from ..font import FontRole
from .termio import TermIO


@dataclasses.dataclass(frozen=True, slots=True)
class Terminal:
    """
    A terminal emulator that changes fonts in response to OSC sequences. The
    font codes are listed in `FontRole` order, with `None` for roles the
    terminal does not expose.
    """

    name: str
    term: str
    resource_class: str
    font_codes: tuple[None | int, ...]

    def __str__(self) -> str:
        return self.name

    def font_code(self, role: FontRole) -> None | int:
        return self.font_codes[list(FontRole).index(role)]

    _registry: ClassVar[None | dict[str, Self]] = None

    @classmethod
    def registry(cls) -> dict[str, Self]:
        if cls._registry is None:
            registry: dict[str, Self] = {}

            for (name, term, resource_class, font_codes), aliases in (
                # rxvt-unicode changes all four fonts with OSC 710-713, but
                # leaves the input method font alone. xterm only supports
                # changing its primary font with OSC 50.
                (
                    ("URxvt", "rxvt-unicode", "URxvt", (710, None, 711, 712, 713)),
                    ("rxvt",),
                ),
                (
                    ("XTerm", "xterm", "XTerm", (50, None, None, None, None)),
                    (),
                ),
            ):
                terminal = cls(name, term, resource_class, font_codes)
                for key in (n.casefold() for n in (name, term, *aliases)):
                    if registry.get(key, terminal) is not terminal:
                        raise AssertionError(f"duplicate terminal name {key}")
                    registry[key] = terminal

            cls._registry = registry

        return cls._registry

    @classmethod
    def all(cls) -> Iterator[Self]:
        seen: set[Self] = set()
        for terminal in cls.registry().values():
            if terminal in seen:
                continue
            seen.add(terminal)
            yield terminal

    @classmethod
    def resolve(cls, ident: str) -> None | Self:
        return cls.registry().get(ident.casefold())

    @classmethod
    def default(cls) -> Self:
        terminal = cls.resolve("rxvt-unicode")
        assert terminal is not None
        return terminal

    # ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~ ~

    @classmethod
    def from_env(cls) -> None | Self:
        """
        Resolve the terminal based on the `TERM` environment variable, which
        may carry a suffix such as `-256color`.
        """
        if (term := os.getenv("TERM")) is None:
            return None
        for terminal in cls.all():
            if term == terminal.term or term.startswith(f"{terminal.term}-"):
                return terminal
        return None

    @classmethod
    def from_xtversion(cls, termio: None | TermIO = None) -> None | Self:
        """Resolve the terminal based on the XTVERSION control sequence."""
        termio = termio or TermIO()
        try:
            with termio.cbreak_mode():
                report = termio.request_terminal_version()
        except (TimeoutError, OSError):
            return None
        if report is None:
            return None
        if report[-1] == ")":
            name, _, _ = report.rpartition("(")
        else:
            name, _, _ = report.partition(" ")
        return cls.resolve(name)

    @classmethod
    def current(cls, termio: None | TermIO = None) -> Self:
        """Resolve the terminal, falling back on rxvt-unicode."""
        if (terminal := cls.from_env()) is not None:
            return terminal
        if sys.__stdin__ is not None and sys.__stdin__.isatty():
            if (terminal := cls.from_xtversion(termio)) is not None:
                return terminal
        return cls.default()
