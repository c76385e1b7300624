"""Version loaders.

This module provides implementations of the VersionLoader protocol. The CSV
loader reads a folder laid out as one sub-folder per project holding one CSV
file per version:

    data/
        ant/
            ant-1.3.csv
            ant-1.4.csv
        camel/
            camel-1.0.csv
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from loguru import logger
import polars as pl

from sdp_experiments.core.data.versions import DEFAULT_LABEL, SoftwareVersion
from sdp_experiments.core.errors import DataError
from sdp_experiments.core.registry import StrategyKind, register_strategy

LABEL_ALIASES: tuple[str, ...] = ("bug", "bugs", "Defective", "defects", "class")
"""Label column names used by the public defect datasets, in lookup order."""

_TRUE_VALUES = frozenset({"y", "yes", "true", "t", "1", "buggy", "defective"})


def normalize_label(data: pl.DataFrame, label: str = DEFAULT_LABEL) -> pl.DataFrame:
    """Rename the dataset's label column to `label` and make it numeric.

    Nominal labels (e.g. `Y`/`N`, `true`/`false`) become 1/0.

    Args:
        data: The raw instances.
        label: The name the label column must have.

    Returns:
        The instances with a numeric label column named `label`.

    Raises:
        DataError: If no known label column is found.
    """
    if label not in data.columns:
        alias = next((name for name in LABEL_ALIASES if name in data.columns), None)
        if alias is None:
            names = dict.fromkeys((label, *LABEL_ALIASES))
            raise DataError(f"no label column among {', '.join(names)}")
        data = data.rename({alias: label})

    dtype = data.schema[label]
    if dtype == pl.Boolean:
        return data.with_columns(pl.col(label).cast(pl.Int64))
    if dtype.is_numeric():
        return data
    return data.with_columns(
        pl.col(label)
        .cast(pl.String)
        .str.strip_chars()
        .str.to_lowercase()
        .is_in(list(_TRUE_VALUES))
        .cast(pl.Int64)
        .alias(label)
    )


@register_strategy(StrategyKind.LOADER, "csv_folder")
class CsvFolderLoader:
    """Loads every CSV file below a folder as a software version.

    The parent folder name is the project and the file stem is the version.
    When the stem does not start with the project name, the version id becomes
    `"<project>-<stem>"` so that ids stay unique across projects.

    Example:
        ```python
        loader = CsvFolderLoader("data/jureczko")
        versions = loader.load()
        ```
    """

    def __init__(
        self,
        path: str | Path,
        label: str = DEFAULT_LABEL,
        drop_columns: Sequence[str] = (),
        read_options: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the loader.

        Args:
            path: Folder holding one sub-folder per project.
            label: Name of the label column in the loaded versions.
            drop_columns: Non-feature columns to remove (e.g. file names).
            read_options: Extra keyword arguments for `pl.read_csv`.
        """
        self._path = Path(path)
        self._label = label
        self._drop_columns = tuple(drop_columns)
        self._read_options = read_options or {}

    def _version_id(self, project: str, stem: str) -> str:
        return stem if stem.startswith(project) else f"{project}-{stem}"

    def _read(self, file: Path, project: str) -> SoftwareVersion:
        """Read one version file.

        Unreadable files and files without a label column still yield a
        version, so that the experiment drops and reports it by id.
        """
        version_id = self._version_id(project, file.stem)
        try:
            data = pl.read_csv(file, infer_schema_length=None, **self._read_options)
        except pl.exceptions.PolarsError as exc:
            logger.warning(f"Cannot read {file}: {exc}")
            return SoftwareVersion(project, version_id, pl.DataFrame(), label=self._label)

        data = data.drop(self._drop_columns, strict=False)
        try:
            data = normalize_label(data, self._label)
        except DataError as exc:
            logger.warning(f"Version {version_id} is unusable: {exc}")
        return SoftwareVersion(project, version_id, data, label=self._label)

    def load(self) -> list[SoftwareVersion]:
        """Load all versions below the folder.

        Returns:
            The versions, sorted by project and version.

        Raises:
            DataError: If the folder does not exist.
        """
        if not self._path.is_dir():
            raise DataError(f"data folder does not exist: {self._path}")

        versions: list[SoftwareVersion] = []
        for project_dir in sorted(p for p in self._path.iterdir() if p.is_dir()):
            for file in sorted(project_dir.glob("*.csv")):
                versions.append(self._read(file, project_dir.name))

        logger.info(f"Loaded {len(versions)} versions from {self._path}")
        return sorted(versions)


class InMemoryLoader:
    """Serves versions that were built in memory.

    Useful for tests and for programmatic experiments.
    """

    def __init__(self, versions: Sequence[SoftwareVersion]) -> None:
        self._versions = list(versions)

    def load(self) -> list[SoftwareVersion]:
        return list(self._versions)


__all__ = ["LABEL_ALIASES", "normalize_label", "CsvFolderLoader", "InMemoryLoader"]
