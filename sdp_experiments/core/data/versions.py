"""Software versions and helpers for their instance tables."""

from __future__ import annotations

from dataclasses import dataclass, replace
import re
from typing import Any

import polars as pl

from sdp_experiments.core.errors import DataError

DEFAULT_LABEL = "bug"
"""Name of the label column holding defect counts (or 0/1 defect presence)."""

EFFORT_COLUMNS: tuple[str, ...] = (
    "loc",  # JURECZKO data and default
    "LOC_EXECUTABLE",  # NASA / SOFTMINE / MDP data
    "numberOfLinesOfCode",  # AEEEM data
    "CountLineCodeExe",  # RELINK data
    "LOC",  # SMARTSHARK data
)
"""Columns holding a size measure, in lookup priority order."""

DEFAULT_EFFORT = 1.0

_NUMBER_PATTERN = re.compile(r"(\d+)")


def _natural_key(value: str) -> tuple[Any, ...]:
    """Sort key that orders embedded numbers numerically (1.9 before 1.10)."""
    return tuple(
        int(part) if part.isdigit() else part.lower() for part in _NUMBER_PATTERN.split(value)
    )


@dataclass(eq=False, slots=True)
class SoftwareVersion:
    """A single snapshot of a software project with its instances.

    Versions compare by identity, and sort by project and then version so that
    every run iterates them in the same order.

    Attributes:
        project: Name of the project the version belongs to.
        version: Identifier of the version, unique within an experiment.
        instances: One row per module; feature columns plus the label column.
        label: Name of the label column.
    """

    project: str
    version: str
    instances: pl.DataFrame
    label: str = DEFAULT_LABEL

    @property
    def id(self) -> str:
        return self.version

    @property
    def num_instances(self) -> int:
        return self.instances.height

    @property
    def sort_key(self) -> tuple[tuple[Any, ...], tuple[Any, ...]]:
        return _natural_key(self.project), _natural_key(self.version)

    def __lt__(self, other: SoftwareVersion) -> bool:
        return self.sort_key < other.sort_key

    def __repr__(self) -> str:
        return f"SoftwareVersion({self.project}/{self.version}, n={self.num_instances})"

    def with_instances(self, instances: pl.DataFrame) -> SoftwareVersion:
        """Return a copy of the version holding other instances."""
        return replace(self, instances=instances)


def get_efforts(data: pl.DataFrame) -> list[float]:
    """Get the effort of every instance.

    The effort column is looked up in `EFFORT_COLUMNS` order. When the data has
    none of them, every instance gets a constant effort of 1.0.

    Args:
        data: The instances.

    Returns:
        One effort value per row.
    """
    for column in EFFORT_COLUMNS:
        if column in data.columns:
            return data.get_column(column).cast(pl.Float64).fill_null(0.0).to_list()
    return [DEFAULT_EFFORT] * data.height


def get_num_bugs(data: pl.DataFrame, label: str) -> list[float]:
    """Get the number of bugs of every instance from the label column.

    Raises:
        DataError: If the label column is missing or not numeric.
    """
    if label not in data.columns:
        raise DataError(f"missing label column '{label}'")
    column = data.get_column(label)
    if not column.dtype.is_numeric() and column.dtype != pl.Boolean:
        raise DataError(f"label column '{label}' is not numeric ({column.dtype})")
    return column.cast(pl.Float64).fill_null(0.0).to_list()


def feature_columns(data: pl.DataFrame, label: str) -> list[str]:
    """Get the names of the numeric feature columns, excluding the label."""
    return [
        name
        for name, dtype in data.schema.items()
        if name != label and (dtype.is_numeric() or dtype == pl.Boolean)
    ]


def validate_version(version: SoftwareVersion, label: str, folds: int) -> None:
    """Check that a version can take part in a cross-validation experiment.

    Raises:
        DataError: If the label column is missing or not numeric, the version
            has no numeric feature, or it has fewer instances than folds.
    """
    data = version.instances
    if version.label != label or label not in data.columns:
        raise DataError(f"missing label column '{label}'", version.id)
    dtype = data.schema[label]
    if not dtype.is_numeric() and dtype != pl.Boolean:
        raise DataError(f"label column '{label}' is not numeric ({dtype})", version.id)
    if not feature_columns(data, label):
        raise DataError("no numeric feature columns", version.id)
    if data.height < folds:
        raise DataError(
            f"{data.height} instances cannot be split into {folds} folds", version.id
        )


__all__ = [
    "DEFAULT_LABEL",
    "EFFORT_COLUMNS",
    "DEFAULT_EFFORT",
    "SoftwareVersion",
    "get_efforts",
    "get_num_bugs",
    "feature_columns",
    "validate_version",
]
