"""Classification and effort-aware metrics for defect prediction."""

from collections.abc import Sequence

import numpy as np
from sklearn.metrics import (
    balanced_accuracy_score,
    confusion_matrix,
    f1_score,
    matthews_corrcoef,
    precision_score,
    recall_score,
    roc_auc_score,
)

METRIC_COLUMNS: tuple[str, ...] = (
    "tp",
    "fp",
    "tn",
    "fn",
    "recall",
    "precision",
    "fscore",
    "gscore",
    "mcc",
    "auc",
    "balanced_accuracy",
    "aucec",
    "num_instances",
    "total_effort",
    "total_bugs",
)
"""Metric columns of a result row, in output order."""


def g_mean_score(y_true, y_pred):
    """Calculates the Geometric Mean of Sensitivity and Specificity."""
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    sensitivity = tp / (tp + fn) if (tp + fn) > 0 else 0
    specificity = tn / (tn + fp) if (tn + fp) > 0 else 0
    return np.sqrt(sensitivity * specificity)


def auc_score(y_true: np.ndarray, y_score: np.ndarray) -> float:
    """ROC AUC, or NaN when the test rows hold a single class."""
    if len(np.unique(y_true)) < 2:
        return float("nan")
    return float(roc_auc_score(y_true, y_score))


def aucec_score(
    y_score: np.ndarray,
    efforts: Sequence[float],
    num_bugs: Sequence[float],
) -> float:
    """Area under the cost-effectiveness curve.

    Rows are inspected in decreasing order of predicted defect density
    (score / effort); the curve plots the share of bugs found against the
    share of effort spent. A perfect effort-aware ranking approaches 1.0.

    Args:
        y_score: Predicted defect probability of every row.
        efforts: Effort of every row.
        num_bugs: Number of bugs of every row.

    Returns:
        The normalized area, or NaN when there are no bugs or no effort.
    """
    effort = np.asarray(efforts, dtype=float)
    bugs = np.asarray(num_bugs, dtype=float)
    total_effort = effort.sum()
    total_bugs = bugs.sum()
    if total_effort <= 0 or total_bugs <= 0:
        return float("nan")

    density = np.asarray(y_score, dtype=float) / np.where(effort > 0, effort, np.inf)
    # Ties are broken by smaller effort first
    order = np.lexsort((effort, -density))
    x = np.concatenate([[0.0], np.cumsum(effort[order]) / total_effort])
    y = np.concatenate([[0.0], np.cumsum(bugs[order]) / total_bugs])
    return float(np.trapezoid(y, x))


def compute_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    y_score: np.ndarray,
    efforts: Sequence[float],
    num_bugs: Sequence[float],
) -> dict[str, float]:
    """Compute every metric of a result row.

    Args:
        y_true: True 0/1 labels.
        y_pred: Predicted 0/1 labels.
        y_score: Predicted probability of the defective class.
        efforts: Effort of every row.
        num_bugs: Number of bugs of every row.

    Returns:
        Metric name to value, in `METRIC_COLUMNS` order.
    """
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    return {
        "tp": float(tp),
        "fp": float(fp),
        "tn": float(tn),
        "fn": float(fn),
        "recall": float(recall_score(y_true, y_pred, labels=[0, 1], zero_division=0)),
        "precision": float(precision_score(y_true, y_pred, labels=[0, 1], zero_division=0)),
        "fscore": float(f1_score(y_true, y_pred, labels=[0, 1], zero_division=0)),
        "gscore": float(g_mean_score(y_true, y_pred)),
        "mcc": float(matthews_corrcoef(y_true, y_pred)),
        "auc": auc_score(y_true, y_score),
        "balanced_accuracy": float(balanced_accuracy_score(y_true, y_pred))
        if len(np.unique(y_true)) > 1
        else float("nan"),
        "aucec": aucec_score(y_score, efforts, num_bugs),
        "num_instances": float(len(y_true)),
        "total_effort": float(np.sum(efforts)),
        "total_bugs": float(np.sum(num_bugs)),
    }


__all__ = [
    "METRIC_COLUMNS",
    "g_mean_score",
    "auc_score",
    "aucec_score",
    "compute_metrics",
]
