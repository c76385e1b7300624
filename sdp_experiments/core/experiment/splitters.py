"""Repeated k-fold partitioning of software versions."""

import numpy as np
import polars as pl

from sdp_experiments.core.errors import DataError
from sdp_experiments.core.experiment.protocols import FoldSplit


class RepeatedFoldPartitioner:
    """Splits versions into R repeats of K disjoint folds.

    Every repeat shuffles the rows with a generator seeded by the repeat index
    only, so two versions of the same size are shuffled identically and a
    rerun reproduces the same folds. Within a repeat the K test folds are
    disjoint and together cover every row. When the row count is not divisible
    by K, the first `n_rows % K` folds hold one extra row.

    Example:
        ```python
        partitioner = RepeatedFoldPartitioner(repeats=10, folds=10)
        shuffled = partitioner.shuffle(version.instances, repeat=0)
        for fold in range(partitioner.folds):
            split = partitioner.split(shuffled, fold)
        ```
    """

    def __init__(self, repeats: int = 10, folds: int = 10) -> None:
        """Initialize the partitioner.

        Args:
            repeats: Number of repeats.
            folds: Number of folds per repeat.
        """
        if repeats < 1:
            raise ValueError("repeats must be at least 1")
        if folds < 2:
            raise ValueError("folds must be at least 2")
        self._repeats = repeats
        self._folds = folds

    @property
    def repeats(self) -> int:
        return self._repeats

    @property
    def folds(self) -> int:
        return self._folds

    def _check(self, n_rows: int, repeat: int | None = None, fold: int | None = None) -> None:
        if n_rows < self._folds:
            raise DataError(f"{n_rows} rows cannot be split into {self._folds} folds")
        if repeat is not None and not 0 <= repeat < self._repeats:
            raise DataError(f"repeat {repeat} out of range [0, {self._repeats})")
        if fold is not None and not 0 <= fold < self._folds:
            raise DataError(f"fold {fold} out of range [0, {self._folds})")

    def permutation(self, n_rows: int, repeat: int) -> np.ndarray:
        """Get the row order of a repeat.

        Args:
            n_rows: Number of rows of the version.
            repeat: The repeat index.

        Returns:
            A permutation of `range(n_rows)`.
        """
        self._check(n_rows, repeat=repeat)
        rng = np.random.default_rng(repeat + 1)
        return rng.permutation(n_rows)

    def fold_bounds(self, n_rows: int, fold: int) -> tuple[int, int]:
        """Get the `[start, stop)` positions of a fold in the shuffled order."""
        self._check(n_rows, fold=fold)
        base, extra = divmod(n_rows, self._folds)
        start = fold * base + min(fold, extra)
        stop = start + base + (1 if fold < extra else 0)
        return start, stop

    def indices(self, n_rows: int, repeat: int, fold: int) -> tuple[np.ndarray, np.ndarray]:
        """Get the original row indices of the test and train halves of a fold."""
        order = self.permutation(n_rows, repeat)
        start, stop = self.fold_bounds(n_rows, fold)
        return order[start:stop], np.concatenate([order[:start], order[stop:]])

    def shuffle(self, data: pl.DataFrame, repeat: int) -> pl.DataFrame:
        """Reorder the rows of a version for a repeat.

        Computed once per repeat and reused by all folds of that repeat.
        """
        order = self.permutation(data.height, repeat)
        return data[order]

    def split(self, shuffled: pl.DataFrame, fold: int) -> FoldSplit:
        """Cut a shuffled version into the test fold and the remaining rows.

        Args:
            shuffled: The output of `shuffle`.
            fold: The fold index.

        Returns:
            The test and train halves. Neither shares rows with the other.
        """
        start, stop = self.fold_bounds(shuffled.height, fold)
        test = shuffled.slice(start, stop - start)
        train = pl.concat([shuffled.slice(0, start), shuffled.slice(stop)], how="vertical")
        return FoldSplit(test=test, train=train)


__all__ = ["RepeatedFoldPartitioner"]
