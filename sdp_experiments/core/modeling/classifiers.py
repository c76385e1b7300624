"""Classifier families used by the trainers and the fitted model wrapper."""

from __future__ import annotations

import enum
from typing import Any

import numpy as np
import polars as pl
from sklearn.base import BaseEstimator, ClassifierMixin, clone
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.naive_bayes import GaussianNB
from sklearn.neural_network import MLPClassifier
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from sdp_experiments.core.choices import Choice, choice_by_id


class ClassifierType(enum.Enum):
    """Classifier families of the published defect prediction benchmarks."""

    NAIVE_BAYES = Choice("NB", "Naive Bayes")
    RANDOM_FOREST = Choice("RF", "Random Forest")
    DECISION_TREE = Choice("DT", "Decision Tree")
    LOGISTIC_REGRESSION = Choice("LR", "Logistic Regression")
    NEURAL_NETWORK = Choice("NET", "Neural Network")
    SVM = Choice("SVM", "Support Vector Machine")

    def __str__(self) -> str:
        return self.id

    @property
    def id(self) -> str:
        return self.value.id

    @property
    def display_name(self) -> str:
        return self.value.display_name

    @classmethod
    def from_id(cls, identifier: str) -> ClassifierType:
        return choice_by_id(cls, identifier)


def build_estimator(
    classifier: ClassifierType, random_state: int = 42, **params: Any
) -> BaseEstimator:
    """Build an unfitted estimator for a classifier family.

    Scale-sensitive families are wrapped in a pipeline with a standard scaler.

    Args:
        classifier: The classifier family.
        random_state: Seed of randomized estimators.
        **params: Parameters of the final estimator.

    Returns:
        The estimator.
    """
    match classifier:
        case ClassifierType.NAIVE_BAYES:
            return GaussianNB(**params)
        case ClassifierType.RANDOM_FOREST:
            return RandomForestClassifier(
                random_state=random_state, **{"n_estimators": 100, **params}
            )
        case ClassifierType.DECISION_TREE:
            return DecisionTreeClassifier(random_state=random_state, **params)
        case ClassifierType.LOGISTIC_REGRESSION:
            return make_pipeline(
                StandardScaler(), LogisticRegression(**{"max_iter": 1000, **params})
            )
        case ClassifierType.NEURAL_NETWORK:
            return make_pipeline(
                StandardScaler(),
                MLPClassifier(random_state=random_state, **{"max_iter": 500, **params}),
            )
        case ClassifierType.SVM:
            return make_pipeline(
                StandardScaler(), SVC(probability=True, random_state=random_state, **params)
            )
    raise ValueError(f"Unsupported classifier: {classifier}")


def _ensure_two_classes(probas: np.ndarray, classes: np.ndarray) -> np.ndarray:
    """Ensures that the probability matrix has 2 columns, even if the model
    has collapsed to a single class.
    """
    if probas.shape[1] == 1:
        new_probas = np.zeros((probas.shape[0], 2), dtype=probas.dtype)
        # Assumes binary classes {0, 1}
        new_probas[:, int(classes[0])] = probas[:, 0]
        return new_probas
    return probas


def to_matrix(data: pl.DataFrame, columns: list[str]) -> np.ndarray:
    """Select the feature columns as a float matrix, missing values as 0."""
    missing = [c for c in columns if c not in data.columns]
    if missing:
        data = data.with_columns(pl.lit(0.0).alias(c) for c in missing)
    return data.select(pl.col(columns).cast(pl.Float64).fill_null(0.0).fill_nan(0.0)).to_numpy()


def to_labels(data: pl.DataFrame, label: str) -> np.ndarray:
    """Get the 0/1 defect label of every row (any positive count is defective)."""
    return (data.get_column(label).cast(pl.Float64).fill_null(0.0).to_numpy() > 0).astype(int)


class SklearnModel:
    """A fitted scikit-learn estimator bound to its feature columns.

    Attributes:
        name: Name of the model in result rows.
        features: Feature columns the estimator was fitted on.
    """

    def __init__(self, name: str, estimator: ClassifierMixin, features: list[str]) -> None:
        self.name = name
        self.features = features
        self._estimator = estimator

    @classmethod
    def fit(
        cls,
        name: str,
        estimator: BaseEstimator,
        features: list[str],
        X: np.ndarray,
        y: np.ndarray,
    ) -> SklearnModel:
        """Fit a fresh clone of an estimator."""
        fitted = clone(estimator).fit(X, y)
        return cls(name, fitted, features)

    def predict_score_matrix(self, X: np.ndarray) -> np.ndarray:
        probas = self._estimator.predict_proba(X)
        return _ensure_two_classes(probas, self._estimator.classes_)[:, 1]

    def predict_score(self, features: pl.DataFrame) -> np.ndarray:
        return self.predict_score_matrix(to_matrix(features, self.features))

    def predict(self, features: pl.DataFrame) -> np.ndarray:
        return np.asarray(self._estimator.predict(to_matrix(features, self.features))).astype(int)


__all__ = [
    "ClassifierType",
    "build_estimator",
    "to_matrix",
    "to_labels",
    "SklearnModel",
]
