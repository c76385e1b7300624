"""Training strategies backed by scikit-learn classifiers.

Point-wise trainers fit one model on the merged training rows; set-wise
trainers fit one model per training slice and combine their votes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from loguru import logger
import numpy as np
import polars as pl
from sklearn.base import BaseEstimator

from sdp_experiments.core.data.versions import feature_columns
from sdp_experiments.core.experiment.protocols import TrainingSlice
from sdp_experiments.core.modeling.classifiers import (
    ClassifierType,
    SklearnModel,
    build_estimator,
    to_labels,
    to_matrix,
)
from sdp_experiments.core.registry import StrategyKind, register_strategy


def _features_of(data: pl.DataFrame, label: str) -> list[str]:
    features = feature_columns(data, label)
    if not features:
        raise ValueError("training data has no numeric feature columns")
    return features


def _standardize(X: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    mean = X.mean(axis=0)
    std = X.std(axis=0)
    return mean, np.where(std > 0, std, 1.0)


def _center(
    data: pl.DataFrame, features: list[str], mean: np.ndarray, std: np.ndarray
) -> np.ndarray:
    return ((to_matrix(data, features) - mean) / std).mean(axis=0)


class _EstimatorTrainer:
    def __init__(
        self,
        classifier: str | ClassifierType,
        model_name: str | None = None,
        random_state: int = 42,
        params: dict[str, Any] | None = None,
    ) -> None:
        if isinstance(classifier, str):
            classifier = ClassifierType.from_id(classifier)
        self._classifier = classifier
        self._estimator = build_estimator(classifier, random_state, **(params or {}))
        self.name = model_name or self._default_name(classifier)

    @staticmethod
    def _default_name(classifier: ClassifierType) -> str:
        return classifier.id


@register_strategy(StrategyKind.TRAINER, "sklearn")
class SklearnTrainer(_EstimatorTrainer):
    """Fits one classifier on the merged training rows.

    Example:
        ```python
        trainer = SklearnTrainer("RF")
        model = trainer.fit(training, label="bug")
        ```
    """

    def fit(self, training: pl.DataFrame, label: str) -> SklearnModel:
        features = _features_of(training, label)
        X = to_matrix(training, features)
        y = to_labels(training, label)
        return SklearnModel.fit(self.name, self._estimator, features, X, y)


class _TestScaledModel:
    def __init__(
        self,
        name: str,
        model: SklearnModel,
        test_mean: np.ndarray,
        test_std: np.ndarray,
    ) -> None:
        self.name = name
        self._model = model
        self._test_mean = test_mean
        self._test_std = test_std

    def _scaled(self, features: pl.DataFrame) -> np.ndarray:
        X = to_matrix(features, self._model.features)
        return (X - self._test_mean) / self._test_std

    def predict_score(self, features: pl.DataFrame) -> np.ndarray:
        return self._model.predict_score_matrix(self._scaled(features))

    def predict(self, features: pl.DataFrame) -> np.ndarray:
        return (self.predict_score(features) >= 0.5).astype(int)


@register_strategy(StrategyKind.TESTAWARE_TRAINER, "test_scaled_sklearn")
class TestScaledSklearnTrainer(_EstimatorTrainer):
    """Standardizes the training rows and the test rows with their own statistics.

    A simple transfer learning baseline: both sides are brought to zero mean
    and unit variance independently before fitting and predicting.
    """

    @staticmethod
    def _default_name(classifier: ClassifierType) -> str:
        return f"{classifier.id}-TESTSCALED"

    def fit(self, training: pl.DataFrame, test: pl.DataFrame, label: str) -> _TestScaledModel:
        features = _features_of(training, label)
        X = to_matrix(training, features)
        mean, std = _standardize(X)
        y = to_labels(training, label)
        model = SklearnModel.fit(self.name, self._estimator, features, (X - mean) / std, y)
        test_mean, test_std = _standardize(to_matrix(test, features))
        return _TestScaledModel(self.name, model, test_mean, test_std)


class VotingModel:
    """Averages the defect scores of one model per training slice.

    Attributes:
        name: Name of the model in result rows.
        weights: Normalized weight of every member.
    """

    def __init__(
        self,
        name: str,
        members: Sequence[SklearnModel],
        weights: Sequence[float] | None = None,
    ) -> None:
        if not members:
            raise ValueError("a voting model needs at least one member")
        self.name = name
        self._members = list(members)
        w = np.ones(len(members)) if weights is None else np.asarray(weights, dtype=float)
        self.weights = w / w.sum()

    def predict_score(self, features: pl.DataFrame) -> np.ndarray:
        scores = np.vstack([member.predict_score(features) for member in self._members])
        return self.weights @ scores

    def predict(self, features: pl.DataFrame) -> np.ndarray:
        return (self.predict_score(features) >= 0.5).astype(int)


def _fit_members(
    name: str,
    estimator: BaseEstimator,
    training_sets: tuple[TrainingSlice, ...],
    label: str,
) -> tuple[list[SklearnModel], list[TrainingSlice]]:
    members: list[SklearnModel] = []
    fitted_slices: list[TrainingSlice] = []
    for training_slice in training_sets:
        labels = to_labels(training_slice.data, label)
        if len(np.unique(labels)) < 2:
            logger.debug(f"Skipping single-class slice of {training_slice.version.id} in voting")
            continue
        data = training_slice.data
        features = _features_of(data, label)
        X = to_matrix(data, features)
        members.append(SklearnModel.fit(name, estimator, features, X, labels))
        fitted_slices.append(training_slice)
    if not members:
        raise ValueError("no training slice holds both classes")
    return members, fitted_slices


@register_strategy(StrategyKind.SETWISE_TRAINER, "voting")
class VotingTrainer(_EstimatorTrainer):
    """Fits one classifier per training slice and averages their scores.

    Slices holding a single class are skipped.
    """

    @staticmethod
    def _default_name(classifier: ClassifierType) -> str:
        return f"{classifier.id}-VOTE"

    def fit(self, training_sets: tuple[TrainingSlice, ...], label: str) -> VotingModel:
        members, _ = _fit_members(self.name, self._estimator, training_sets, label)
        return VotingModel(self.name, members)


@register_strategy(StrategyKind.SETWISE_TESTAWARE_TRAINER, "similarity_voting")
class SimilarityWeightedVotingTrainer(_EstimatorTrainer):
    """Weights the vote of each slice by how similar it is to the test rows.

    Similarity is `1 / (1 + d)` where `d` is the Euclidean distance between the
    standardized feature means of the slice and of the test rows.
    """

    @staticmethod
    def _default_name(classifier: ClassifierType) -> str:
        return f"{classifier.id}-SIMVOTE"

    def fit(
        self, training_sets: tuple[TrainingSlice, ...], test: pl.DataFrame, label: str
    ) -> VotingModel:
        members, fitted_slices = _fit_members(self.name, self._estimator, training_sets, label)

        features = _features_of(test, label)
        test_X = to_matrix(test, features)
        mean, std = _standardize(test_X)
        test_center = ((test_X - mean) / std).mean(axis=0)
        distances = [
            float(np.linalg.norm(_center(s.data, features, mean, std) - test_center))
            for s in fitted_slices
        ]
        weights = [1.0 / (1.0 + d) for d in distances]
        return VotingModel(self.name, members, weights)


__all__ = [
    "SklearnTrainer",
    "TestScaledSklearnTrainer",
    "VotingModel",
    "VotingTrainer",
    "SimilarityWeightedVotingTrainer",
]
