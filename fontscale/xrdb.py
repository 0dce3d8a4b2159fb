"""
Persist font resources with `xrdb`.

Persisting a change takes three steps: Reload the live resource database from
the base file, merge the updated resources into the live database, and finally
write the live database's values back into the base file. Only the merge is
checked. Its failure raises a `ResourceError`, whereas failures of the other
two steps are logged and otherwise ignored.
"""

from collections.abc import Iterable, Mapping
import logging
from pathlib import Path
import subprocess
from typing import Protocol

from .font import FontDescriptor, FontRole


__all__ = (
    'ResourceError',
    'ResourceStore',
    'XrdbStore',
    'persist',
)


_logger = logging.getLogger(__name__)


class ResourceError(Exception):
    """An error indicating that merging resources into the live database failed."""


class ResourceStore(Protocol):
    def load_base(self) -> bool:
        ...

    def merge(self, lines: Iterable[str]) -> None:
        ...

    def rederive_base(self) -> bool:
        ...

    def query(self) -> dict[str, str]:
        ...


class XrdbStore:
    """The live resource database backed by the given base file."""

    def __init__(self, base: Path, program: str = 'xrdb') -> None:
        self._base = base
        self._program = program

    def _run(self, *arguments: str) -> None | subprocess.CompletedProcess[str]:
        command = [self._program, *arguments]
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                encoding='utf8',
            )
        except OSError as x:
            _logger.warning('unable to run "%s": %s', ' '.join(command), x)
            return None

        if result.returncode != 0:
            _logger.warning(
                '"%s" exited with status %d', ' '.join(command), result.returncode
            )
        return result

    def load_base(self) -> bool:
        """Reload the live database from the base file."""
        result = self._run('-load', str(self._base))
        return result is not None and result.returncode == 0

    def rederive_base(self) -> bool:
        """Update the base file with the values from the live database."""
        result = self._run('-edit', str(self._base))
        return result is not None and result.returncode == 0

    def query(self) -> dict[str, str]:
        """Read the live database's `name: value` entries."""
        if (result := self._run('-query')) is None:
            return {}

        resources = {}
        for line in result.stdout.splitlines():
            name, sep, value = line.partition(':')
            if sep:
                resources[name.strip()] = value.strip()
        return resources

    def merge(self, lines: Iterable[str]) -> None:
        """Merge the `name: value` lines into the live database."""
        command = [self._program, '-merge']
        try:
            process = subprocess.Popen(
                command, stdin=subprocess.PIPE, encoding='utf8'
            )
        except OSError as x:
            raise ResourceError(f'unable to run "{" ".join(command)}"') from x

        assert process.stdin is not None
        try:
            with process.stdin as pipe:
                for line in lines:
                    pipe.write(line)
                    pipe.write('\n')
        except BrokenPipeError as x:
            process.wait()
            raise ResourceError(f'"{" ".join(command)}" closed its input') from x

        if (status := process.wait()) != 0:
            raise ResourceError(f'"{" ".join(command)}" exited with status {status}')


def persist(
    fonts: Mapping[FontRole, FontDescriptor],
    store: ResourceStore,
    prefix: str,
) -> None:
    """Write the fonts through to the live database and the base file."""
    store.load_base()
    store.merge(f'{prefix}.{role.key}: {fonts[role]}' for role in FontRole)
    store.rederive_base()
    _logger.info('persisted fonts as "%s" resources', prefix)
