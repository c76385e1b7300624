"""Statistical post-processing of experiment results."""

from sdp_experiments.core.analysis.summary import (
    GROUP_COLUMNS,
    ResultsSummarizer,
    read_results,
    summarize_results,
)

__all__ = ["GROUP_COLUMNS", "ResultsSummarizer", "read_results", "summarize_results"]
