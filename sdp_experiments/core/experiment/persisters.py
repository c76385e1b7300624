"""Result persistence implementations for the experiment pipeline."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from pathlib import Path
import threading

from loguru import logger
import polars as pl

from sdp_experiments.core.errors import ResultStoreError
from sdp_experiments.core.experiment.protocols import ResultRow
from sdp_experiments.core.registry import StrategyKind, register_strategy

_PATH_LOCKS: dict[Path, threading.Lock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def lock_for(path: Path) -> threading.Lock:
    """Get the process-wide lock serializing writes to a file."""
    key = path.resolve()
    with _PATH_LOCKS_GUARD:
        return _PATH_LOCKS.setdefault(key, threading.Lock())


def write_records(path: Path, rows: Sequence[ResultRow], include_header: bool) -> None:
    """Write result rows as CSV records.

    A header write creates or truncates the file; otherwise rows are appended
    to the existing file.

    Args:
        path: The CSV file.
        rows: The rows to write, in order.
        include_header: Whether to start a new file with a header row.

    Raises:
        ResultStoreError: If the file cannot be written, or rows are to be
            appended to a file that does not exist.
    """
    if not rows:
        return
    if not include_header and not path.exists():
        raise ResultStoreError(str(path), "cannot append to a missing file without a header")
    frame = pl.DataFrame([row.to_record() for row in rows])
    try:
        with lock_for(path), path.open("wb" if include_header else "ab") as fh:
            frame.write_csv(fh, include_header=include_header)
    except OSError as exc:
        raise ResultStoreError(str(path), str(exc)) from exc


@register_strategy(StrategyKind.RESULT_STORE, "memory")
class InMemoryResultStore:
    """Keeps result rows in memory.

    Thread-safe; mostly useful for tests and for inspecting a run programmatically.
    """

    def __init__(self) -> None:
        self._rows: list[ResultRow] = []
        self._lock = threading.Lock()

    @property
    def rows(self) -> list[ResultRow]:
        with self._lock:
            return list(self._rows)

    def contains_result(self, experiment: str, version: str, classifier: str) -> int:
        with self._lock:
            return sum(
                1
                for row in self._rows
                if row.experiment == experiment
                and row.version == version
                and row.classifier == classifier
            )

    def add_result(self, row: ResultRow) -> None:
        with self._lock:
            self._rows.append(row)


@register_strategy(StrategyKind.RESULT_STORE, "csv")
class CsvResultStore:
    """Appends result rows to one CSV file per experiment.

    Files live at `<directory>/<experiment>.csv`. Row counts per
    (version, classifier) are read from the file once and then kept up to date
    in memory.

    Example:
        ```python
        store = CsvResultStore("results/store")
        store.add_result(row)
        store.contains_result("exp", "ant-1.7", "RF")  # -> 1
        ```
    """

    def __init__(self, directory: str | Path) -> None:
        """Initialize the store.

        Args:
            directory: Directory holding the per-experiment files.
        """
        self._directory = Path(directory)
        self._counts: dict[str, Counter[tuple[str, str]]] = {}
        self._lock = threading.Lock()

    def path_for(self, experiment: str) -> Path:
        return self._directory / f"{experiment}.csv"

    def _load_counts(self, experiment: str) -> Counter[tuple[str, str]]:
        if experiment in self._counts:
            return self._counts[experiment]
        counts: Counter[tuple[str, str]] = Counter()
        path = self.path_for(experiment)
        if path.exists() and path.stat().st_size > 0:
            try:
                keys = pl.read_csv(
                    path,
                    columns=["version", "classifier"],
                    schema_overrides={"version": pl.String, "classifier": pl.String},
                )
            except (OSError, pl.exceptions.PolarsError) as exc:
                raise ResultStoreError(str(path), str(exc)) from exc
            counts.update(
                zip(keys.get_column("version"), keys.get_column("classifier"), strict=True)
            )
            logger.debug(f"Read {keys.height} stored results from {path}")
        self._counts[experiment] = counts
        return counts

    def contains_result(self, experiment: str, version: str, classifier: str) -> int:
        with self._lock:
            return self._load_counts(experiment)[(version, classifier)]

    def add_result(self, row: ResultRow) -> None:
        path = self.path_for(row.experiment)
        with self._lock:
            counts = self._load_counts(row.experiment)
            try:
                self._directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ResultStoreError(str(self._directory), str(exc)) from exc
            starts_file = not path.exists() or path.stat().st_size == 0
            write_records(path, [row], include_header=starts_file)
            counts[(row.version, row.classifier)] += 1


__all__ = [
    "lock_for",
    "write_records",
    "InMemoryResultStore",
    "CsvResultStore",
]
