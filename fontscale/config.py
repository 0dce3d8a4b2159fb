import argparse
import dataclasses
from pathlib import Path
from typing import Self

from .font import SizeRestriction


BASE_RESOURCE_FILE = Path.home() / '.Xresources'
RESOURCE_CLASS = 'URxvt'

# Monaco only has full Unicode coverage at these sizes.
UNICODE_RESTRICT = True
RESTRICTED_FAMILY = 'Monaco'
RESTRICTED_SIZES: tuple[int, ...] = (8, 9, 10, 11, 13, 15, 16, 18, 21, 22, 28)

DPI_SCALING = True
BASELINE_DPI = 75
MM_TO_INCH = 0.0393701


@dataclasses.dataclass(frozen=True, slots=True)
class Config:
    """The configuration of one font scaler."""

    base_resource_file: Path = BASE_RESOURCE_FILE
    resource_class: str = RESOURCE_CLASS
    unicode_restrict: bool = UNICODE_RESTRICT
    restricted_family: str = RESTRICTED_FAMILY
    restricted_sizes: tuple[int, ...] = RESTRICTED_SIZES
    dpi_scaling: bool = DPI_SCALING
    baseline_dpi: int = BASELINE_DPI

    def __post_init__(self) -> None:
        if self.baseline_dpi <= 0:
            raise ValueError(f'baseline DPI {self.baseline_dpi} is not positive')
        if any(a >= b for a, b in zip(self.restricted_sizes, self.restricted_sizes[1:])):
            raise ValueError(
                f'restricted sizes {self.restricted_sizes} are not strictly increasing'
            )

    @property
    def restriction(self) -> None | SizeRestriction:
        """The size restriction, if the unicode restriction is enabled."""
        if not self.unicode_restrict or not self.restricted_sizes:
            return None
        return SizeRestriction(self.restricted_family, self.restricted_sizes)

    @classmethod
    def from_options(
        cls, options: argparse.Namespace, resource_class: str = RESOURCE_CLASS
    ) -> Self:
        return cls(
            base_resource_file=options.resource_file.expanduser(),
            resource_class=resource_class,
            unicode_restrict=options.unicode_restrict,
            dpi_scaling=options.dpi_scaling,
            baseline_dpi=options.baseline_dpi,
        )
