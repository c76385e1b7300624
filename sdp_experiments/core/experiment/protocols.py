"""Protocol definitions for experiment pipeline components.

This module defines the values exchanged between the stages of a
cross-validation experiment and the interfaces of the pluggable strategies:
set-wise and point-wise processing, selection and training, evaluation and
result persistence.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np
import polars as pl

if TYPE_CHECKING:
    from sdp_experiments.core.data.versions import SoftwareVersion
    from sdp_experiments.core.errors import EvaluationError

VALUE_SEPARATOR = ";"
"""Separator of the per-instance values in the `efforts` and `num_bugs` columns."""


class SliceRoles(enum.StrEnum):
    """Which half of a fold split is evaluated and which half is trained on.

    STANDARD evaluates on the held-out fold and trains on the remaining folds.
    INVERTED evaluates on the remaining folds and trains on the held-out fold
    of every version, which reproduces the layout of earlier published results.
    """

    STANDARD = "standard"
    INVERTED = "inverted"


@dataclass(frozen=True, slots=True)
class FoldSplit:
    """The two halves of one fold of a shuffled version.

    Attributes:
        test: The rows of the fold.
        train: All other rows, in shuffled order.
    """

    test: pl.DataFrame
    train: pl.DataFrame


@dataclass(frozen=True, slots=True, eq=False)
class TrainingSlice:
    """One version's contribution to a training corpus.

    Slices compare by identity: two slices holding equal rows are still
    distinct contributions.

    Attributes:
        version: The version the rows come from.
        repeat: The repeat the slice was cut in.
        fold: The fold the slice was cut in.
        data: The rows.
    """

    version: SoftwareVersion
    repeat: int
    fold: int
    data: pl.DataFrame

    def with_data(self, data: pl.DataFrame) -> TrainingSlice:
        """Return a new slice of the same origin holding other rows."""
        return replace(self, data=data)


@dataclass(frozen=True, slots=True)
class SetWiseData:
    """Input and output of the set-wise stages.

    Attributes:
        test: The test rows.
        training_sets: The candidate training slices, in corpus order.
        label: Name of the label column.
    """

    test: pl.DataFrame
    training_sets: tuple[TrainingSlice, ...]
    label: str


@dataclass(frozen=True, slots=True)
class PointWiseData:
    """Input and output of the point-wise stages.

    Only the merge of a set-wise corpus creates these.

    Attributes:
        test: The test rows.
        training: The merged training rows.
        label: Name of the label column.
    """

    test: pl.DataFrame
    training: pl.DataFrame
    label: str


@dataclass(frozen=True, slots=True)
class IterationIdentity:
    """Identifies one (repeat, fold, test version) iteration of an experiment."""

    experiment: str
    version: str
    repeat: int
    fold: int


@dataclass(frozen=True, slots=True)
class ResultRow:
    """The evaluation of one trained model on one test slice.

    Attributes:
        experiment: Name of the experiment.
        version: Id of the test version.
        repeat: The repeat index.
        fold: The fold index.
        classifier: Name of the trained model.
        metrics: Metric name to value, in output column order.
        efforts: Effort of every test row.
        num_bugs: Number of bugs of every test row.
    """

    experiment: str
    version: str
    repeat: int
    fold: int
    classifier: str
    metrics: dict[str, float]
    efforts: tuple[float, ...] = field(default=())
    num_bugs: tuple[float, ...] = field(default=())

    def to_record(self) -> dict[str, str | int | float]:
        """Flatten the row into one CSV record.

        The effort and bug lists become `VALUE_SEPARATOR`-joined strings.
        """
        return {
            "experiment": self.experiment,
            "version": self.version,
            "repeat": self.repeat,
            "fold": self.fold,
            "classifier": self.classifier,
            **self.metrics,
            "efforts": VALUE_SEPARATOR.join(str(float(v)) for v in self.efforts),
            "num_bugs": VALUE_SEPARATOR.join(str(float(v)) for v in self.num_bugs),
        }


def split_values(text: str | float | None) -> tuple[float, ...]:
    """Parse an `efforts` or `num_bugs` field of a result record.

    CSV readers infer a float for single-instance fields, which is accepted too.
    """
    if text is None or text == "":
        return ()
    return tuple(float(v) for v in str(text).split(VALUE_SEPARATOR))


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """The rows written for one iteration and the models that could not be scored."""

    rows: list[ResultRow] = field(default_factory=list)
    errors: list[EvaluationError] = field(default_factory=list)


@runtime_checkable
class TrainedModel(Protocol):
    """A fitted model that predicts the defect label of test rows.

    Models may additionally expose `predict_score(features) -> np.ndarray`
    returning the probability of the defective class; evaluators fall back to
    `predict` when it is absent.
    """

    name: str

    def predict(self, features: pl.DataFrame) -> np.ndarray:
        """Predict 0/1 labels, one per row."""
        ...


@runtime_checkable
class SetWiseProcessor(Protocol):
    """Transforms the test rows and the training slices before selection."""

    name: str

    def process(self, data: SetWiseData) -> SetWiseData: ...


@runtime_checkable
class SetWiseSelector(Protocol):
    """Chooses which training slices are kept."""

    name: str

    def select(self, data: SetWiseData) -> SetWiseData: ...


@runtime_checkable
class SetWiseTrainingStrategy(Protocol):
    """Fits a model from the training slices without looking at the test rows."""

    name: str

    def fit(self, training_sets: tuple[TrainingSlice, ...], label: str) -> TrainedModel: ...


@runtime_checkable
class SetWiseTestAwareTrainingStrategy(Protocol):
    """Fits a model from the training slices and the unlabeled test rows."""

    name: str

    def fit(
        self, training_sets: tuple[TrainingSlice, ...], test: pl.DataFrame, label: str
    ) -> TrainedModel: ...


@runtime_checkable
class PointWiseProcessor(Protocol):
    """Transforms the test rows and the merged training rows."""

    name: str

    def process(self, data: PointWiseData) -> PointWiseData: ...


@runtime_checkable
class PointWiseSelector(Protocol):
    """Chooses which training rows are kept."""

    name: str

    def select(self, data: PointWiseData) -> PointWiseData: ...


@runtime_checkable
class TrainingStrategy(Protocol):
    """Fits a model from the merged training rows."""

    name: str

    def fit(self, training: pl.DataFrame, label: str) -> TrainedModel: ...


@runtime_checkable
class TestAwareTrainingStrategy(Protocol):
    """Fits a model from the merged training rows and the unlabeled test rows."""

    name: str

    def fit(self, training: pl.DataFrame, test: pl.DataFrame, label: str) -> TrainedModel: ...


@runtime_checkable
class ResultStore(Protocol):
    """Persists result rows and answers how many exist for a key."""

    def contains_result(self, experiment: str, version: str, classifier: str) -> int:
        """Count the rows stored for the (experiment, version, classifier) key."""
        ...

    def add_result(self, row: ResultRow) -> None:
        """Append a row."""
        ...


@runtime_checkable
class Evaluator(Protocol):
    """Scores trained models on a test slice and writes the result rows."""

    def configure(self, output_path: Path) -> None:
        """Set the file the rows are written to. Called before the first evaluation."""
        ...

    def evaluate(
        self,
        test: pl.DataFrame,
        training: pl.DataFrame,
        models: list[TrainedModel],
        efforts: list[float],
        num_bugs: list[float],
        write_header: bool,
        stores: list[ResultStore],
        identity: IterationIdentity,
        label: str,
    ) -> EvaluationResult:
        """Evaluate every model and write one row per model, in model order.

        A model that fails to predict loses only its own row.

        Returns:
            The written rows and the evaluation errors.
        """
        ...


__all__ = [
    "SliceRoles",
    "FoldSplit",
    "TrainingSlice",
    "SetWiseData",
    "PointWiseData",
    "IterationIdentity",
    "VALUE_SEPARATOR",
    "ResultRow",
    "split_values",
    "EvaluationResult",
    "TrainedModel",
    "SetWiseProcessor",
    "SetWiseSelector",
    "SetWiseTrainingStrategy",
    "SetWiseTestAwareTrainingStrategy",
    "PointWiseProcessor",
    "PointWiseSelector",
    "TrainingStrategy",
    "TestAwareTrainingStrategy",
    "ResultStore",
    "Evaluator",
]
