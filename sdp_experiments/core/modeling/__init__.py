"""Classifiers, metrics and the concrete processing, selection and training strategies.

Importing this package registers every strategy it defines.
"""

from sdp_experiments.core.modeling.classifiers import ClassifierType, SklearnModel, build_estimator
from sdp_experiments.core.modeling.metrics import METRIC_COLUMNS, compute_metrics
from sdp_experiments.core.modeling.processors import (
    BinarizeLabel,
    LogTransform,
    MakeClassNumeric,
    ZScoreNormalization,
)
from sdp_experiments.core.modeling.selectors import MinimumSizeSelector, NearestNeighborSelector
from sdp_experiments.core.modeling.trainers import (
    SimilarityWeightedVotingTrainer,
    SklearnTrainer,
    TestScaledSklearnTrainer,
    VotingModel,
    VotingTrainer,
)

__all__ = [
    "ClassifierType",
    "SklearnModel",
    "build_estimator",
    "METRIC_COLUMNS",
    "compute_metrics",
    "BinarizeLabel",
    "LogTransform",
    "MakeClassNumeric",
    "ZScoreNormalization",
    "MinimumSizeSelector",
    "NearestNeighborSelector",
    "SimilarityWeightedVotingTrainer",
    "SklearnTrainer",
    "TestScaledSklearnTrainer",
    "VotingModel",
    "VotingTrainer",
]
