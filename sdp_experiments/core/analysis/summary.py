"""Aggregation of raw per-fold results into per-classifier statistics.

Every (experiment, version, classifier) group of a result file becomes one
row holding the mean and standard deviation of every metric across all
repeats and folds.
"""

from collections.abc import Sequence
from pathlib import Path

from loguru import logger
import polars as pl

from sdp_experiments.core.errors import DataError, ResultStoreError
from sdp_experiments.core.modeling.metrics import METRIC_COLUMNS

GROUP_COLUMNS: tuple[str, ...] = ("experiment", "version", "classifier")
"""Columns identifying a summary row."""


def read_results(path: str | Path) -> pl.DataFrame:
    """Read a result file written by the evaluator.

    Raises:
        DataError: If the file is missing or lacks the identifying columns.
    """
    path = Path(path)
    if not path.exists():
        raise DataError(f"result file does not exist: {path}")
    results = pl.read_csv(path, infer_schema_length=None, null_values=["NaN", "nan"])
    missing = [c for c in GROUP_COLUMNS if c not in results.columns]
    if missing:
        raise DataError(f"result file {path} lacks columns: {', '.join(missing)}")
    return results.with_columns(pl.col(list(GROUP_COLUMNS)).cast(pl.String))


def summarize_results(results: pl.DataFrame, metrics: Sequence[str] | None = None) -> pl.DataFrame:
    """Compute the mean and sample standard deviation of every metric per group.

    Missing values (e.g. AUC on single-class test data) are ignored.

    Args:
        results: Raw result rows.
        metrics: Metrics to aggregate. Defaults to every known metric present.

    Returns:
        One row per group with `<metric>_mean`, `<metric>_std` and `runs`
        columns, sorted by the group columns.
    """
    metrics = [m for m in (metrics or METRIC_COLUMNS) if m in results.columns]
    aggregations: list[pl.Expr] = [pl.len().alias("runs")]
    for metric in metrics:
        values = pl.col(metric).cast(pl.Float64).fill_nan(None)
        aggregations.append(values.mean().alias(f"{metric}_mean"))
        aggregations.append(values.std(ddof=1).alias(f"{metric}_std"))
    return results.group_by(list(GROUP_COLUMNS)).agg(aggregations).sort(list(GROUP_COLUMNS))


class ResultsSummarizer:
    """Reads a result file, aggregates it and writes the summary.

    Example:
        ```python
        summarizer = ResultsSummarizer()
        summary = summarizer.run("results/jureczko-rf.csv", "results/summaries/jureczko-rf.csv")
        ```
    """

    def __init__(self, metrics: Sequence[str] | None = None) -> None:
        """Initialize the summarizer.

        Args:
            metrics: Metrics to aggregate. Defaults to every known metric present.
        """
        self._metrics = list(metrics) if metrics else None

    def run(self, results_path: str | Path, output_path: str | Path | None = None) -> pl.DataFrame:
        """Summarize a result file.

        Args:
            results_path: The raw result CSV.
            output_path: Where to write the summary CSV, if anywhere.

        Returns:
            The summary.

        Raises:
            DataError: If the result file cannot be used.
            ResultStoreError: If the summary cannot be written.
        """
        summary = summarize_results(read_results(results_path), self._metrics)
        if output_path is not None:
            output_path = Path(output_path)
            try:
                output_path.parent.mkdir(parents=True, exist_ok=True)
                summary.write_csv(output_path)
            except OSError as exc:
                raise ResultStoreError(str(output_path), str(exc)) from exc
            logger.success(f"Summary of {summary.height} groups written to {output_path}")
        return summary


__all__ = ["GROUP_COLUMNS", "read_results", "summarize_results", "ResultsSummarizer"]
