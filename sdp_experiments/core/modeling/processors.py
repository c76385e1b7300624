"""Label and feature processors.

Processors registered for both the set-wise and the point-wise stage accept
either kind of stage data and return the same kind.
"""

from abc import ABC, abstractmethod
from typing import TypeVar

import numpy as np
import polars as pl

from sdp_experiments.core.data.loaders import normalize_label
from sdp_experiments.core.data.versions import feature_columns
from sdp_experiments.core.experiment.protocols import PointWiseData, SetWiseData
from sdp_experiments.core.registry import StrategyKind, register_strategy

D = TypeVar("D", SetWiseData, PointWiseData)


class _LabelProcessor(ABC):
    """Applies a table transformation to the test rows and every training table."""

    name: str

    @abstractmethod
    def _transform(self, data: pl.DataFrame, label: str) -> pl.DataFrame:
        """Transform one table of instances."""

    def process(self, data: D) -> D:
        test = self._transform(data.test, data.label)
        if isinstance(data, SetWiseData):
            slices = tuple(
                s.with_data(self._transform(s.data, data.label)) for s in data.training_sets
            )
            return SetWiseData(test=test, training_sets=slices, label=data.label)
        training = self._transform(data.training, data.label)
        return PointWiseData(test=test, training=training, label=data.label)


@register_strategy(StrategyKind.SETWISE_PROCESSOR, "make_class_numeric")
@register_strategy(StrategyKind.PROCESSOR, "make_class_numeric")
class MakeClassNumeric(_LabelProcessor):
    """Turns a nominal defect label into a numeric one (defective -> 1)."""

    name = "make_class_numeric"

    def _transform(self, data: pl.DataFrame, label: str) -> pl.DataFrame:
        return normalize_label(data, label)


@register_strategy(StrategyKind.SETWISE_PROCESSOR, "binarize_label")
@register_strategy(StrategyKind.PROCESSOR, "binarize_label")
class BinarizeLabel(_LabelProcessor):
    """Replaces defect counts by defect presence: 1 if the count is positive, else 0."""

    name = "binarize_label"

    def _transform(self, data: pl.DataFrame, label: str) -> pl.DataFrame:
        defective = pl.col(label).cast(pl.Float64).fill_null(0.0) > 0
        return data.with_columns(defective.cast(pl.Int64).alias(label))


@register_strategy(StrategyKind.PROCESSOR, "zscore")
class ZScoreNormalization:
    """Standardizes every feature to zero mean and unit variance.

    Args:
        use_training_statistics: Scale the test rows with the mean and standard
            deviation of the training rows. If False, each side is scaled with
            its own statistics.
    """

    name = "zscore"

    def __init__(self, use_training_statistics: bool = True) -> None:
        self._use_training_statistics = use_training_statistics

    @staticmethod
    def _scale(data: pl.DataFrame, reference: pl.DataFrame, features: list[str]) -> pl.DataFrame:
        exprs = []
        for column in features:
            values = reference.get_column(column).cast(pl.Float64)
            mean = values.mean() or 0.0
            std = values.std() or 0.0
            if not std or np.isnan(std):
                std = 1.0
            exprs.append(((pl.col(column).cast(pl.Float64) - mean) / std).alias(column))
        return data.with_columns(exprs)

    def process(self, data: PointWiseData) -> PointWiseData:
        features = [
            c for c in feature_columns(data.training, data.label) if c in data.test.columns
        ]
        training = self._scale(data.training, data.training, features)
        reference = data.training if self._use_training_statistics else data.test
        test = self._scale(data.test, reference, features)
        return PointWiseData(test=test, training=training, label=data.label)


@register_strategy(StrategyKind.PROCESSOR, "log")
class LogTransform:
    """Applies `sign(x) * log(1 + |x|)` to every feature."""

    name = "log"

    @staticmethod
    def _transform(data: pl.DataFrame, label: str) -> pl.DataFrame:
        features = feature_columns(data, label)
        return data.with_columns(
            (pl.col(c).cast(pl.Float64).sign() * pl.col(c).cast(pl.Float64).abs().log1p()).alias(c)
            for c in features
        )

    def process(self, data: PointWiseData) -> PointWiseData:
        return PointWiseData(
            test=self._transform(data.test, data.label),
            training=self._transform(data.training, data.label),
            label=data.label,
        )


__all__ = ["MakeClassNumeric", "BinarizeLabel", "ZScoreNormalization", "LogTransform"]
