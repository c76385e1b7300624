"""Training data selectors."""

import numpy as np
import polars as pl
from sklearn.neighbors import NearestNeighbors

from sdp_experiments.core.data.versions import feature_columns
from sdp_experiments.core.experiment.protocols import PointWiseData, SetWiseData
from sdp_experiments.core.modeling.classifiers import to_labels, to_matrix
from sdp_experiments.core.registry import StrategyKind, register_strategy


@register_strategy(StrategyKind.SETWISE_SELECTOR, "minimum_size")
class MinimumSizeSelector:
    """Drops training slices that are too small or hold too few defects.

    Args:
        min_instances: Minimum number of rows of a slice.
        min_defective: Minimum number of defective rows of a slice.
    """

    name = "minimum_size"

    def __init__(self, min_instances: int = 1, min_defective: int = 0) -> None:
        if min_instances < 0 or min_defective < 0:
            raise ValueError("thresholds must not be negative")
        self._min_instances = min_instances
        self._min_defective = min_defective

    def select(self, data: SetWiseData) -> SetWiseData:
        kept = tuple(
            s
            for s in data.training_sets
            if s.data.height >= self._min_instances
            and int(to_labels(s.data, data.label).sum()) >= self._min_defective
        )
        return SetWiseData(test=data.test, training_sets=kept, label=data.label)


@register_strategy(StrategyKind.POINTWISE_SELECTOR, "nearest_neighbor")
class NearestNeighborSelector:
    """Keeps the k nearest training rows of every test row.

    The relevancy filter of Turhan et al.: the selected training data is the
    union of the neighbourhoods, each row kept once, in training order.

    Args:
        k: Number of neighbours per test row.
    """

    name = "nearest_neighbor"

    def __init__(self, k: int = 10) -> None:
        if k < 1:
            raise ValueError("k must be at least 1")
        self._k = k

    def select(self, data: PointWiseData) -> PointWiseData:
        features = [
            c for c in feature_columns(data.training, data.label) if c in data.test.columns
        ]
        if not features:
            raise ValueError("training and test rows share no feature column")
        training_X = to_matrix(data.training, features)
        test_X = to_matrix(data.test, features)

        k = min(self._k, data.training.height)
        neighbors = NearestNeighbors(n_neighbors=k).fit(training_X)
        _, indices = neighbors.kneighbors(test_X)
        selected = np.unique(indices.ravel())

        training = data.training[selected]
        return PointWiseData(test=data.test, training=training, label=data.label)


__all__ = ["MinimumSizeSelector", "NearestNeighborSelector"]
