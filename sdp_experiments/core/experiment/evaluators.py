"""Model evaluation implementations for the experiment pipeline."""

from pathlib import Path

from loguru import logger
import numpy as np
import polars as pl

from sdp_experiments.core.errors import (
    ConfigurationError,
    EvaluationError,
    ExperimentError,
    ResultStoreError,
)
from sdp_experiments.core.experiment.persisters import write_records
from sdp_experiments.core.experiment.protocols import (
    EvaluationResult,
    IterationIdentity,
    ResultRow,
    ResultStore,
    TrainedModel,
)
from sdp_experiments.core.modeling.classifiers import to_labels
from sdp_experiments.core.modeling.metrics import compute_metrics
from sdp_experiments.core.registry import StrategyKind, register_strategy


def _scores(model: TrainedModel, test: pl.DataFrame, y_pred: np.ndarray) -> np.ndarray:
    predict_score = getattr(model, "predict_score", None)
    if predict_score is None:
        return y_pred.astype(float)
    return np.asarray(predict_score(test), dtype=float)


@register_strategy(StrategyKind.EVALUATOR, "defect_prediction")
class DefectPredictionEvaluator:
    """Evaluates defect prediction models with classification and effort-aware metrics.

    This implementation computes, per model:
    - The confusion matrix (tp, fp, tn, fn)
    - Recall, precision, F-score, G-score, MCC, balanced accuracy and AUC
    - The area under the cost-effectiveness curve (AUCEC)
    - The size of the test data: instances, total effort and total bugs

    One CSV row is written per model, in model order, and forwarded to every
    result store. A model that fails to predict is reported and gets no row.
    """

    def __init__(self) -> None:
        self._output_path: Path | None = None

    @property
    def output_path(self) -> Path | None:
        return self._output_path

    def configure(self, output_path: Path) -> None:
        """Set the CSV file of the experiment and create its directory.

        Raises:
            ResultStoreError: If the directory cannot be created.
        """
        output_path = Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ResultStoreError(str(output_path.parent), str(exc)) from exc
        self._output_path = output_path

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
        """Evaluate every model on the test rows and write the result rows.

        Args:
            test: The test rows, label included.
            training: The training rows the models were fitted on.
            models: The trained models, in output order.
            efforts: Effort of every test row.
            num_bugs: Number of bugs of every test row.
            write_header: Whether the CSV file must be started with a header row.
            stores: Result stores every row is forwarded to.
            identity: The iteration being evaluated.
            label: Name of the label column.

        Returns:
            The written rows and the errors of the models that could not be
            scored.

        Raises:
            ConfigurationError: If `configure` was not called.
            ResultStoreError: If a row cannot be written or stored.
        """
        if self._output_path is None:
            raise ConfigurationError("evaluator used before configure()")
        if len(efforts) != test.height or len(num_bugs) != test.height:
            raise ValueError("efforts and bug counts must have one value per test row")

        y_true = to_labels(test, label)
        rows: list[ResultRow] = []
        errors: list[EvaluationError] = []
        for model in models:
            try:
                y_pred = np.asarray(model.predict(test)).astype(int)
                y_score = _scores(model, test, y_pred)
                metrics = compute_metrics(y_true, y_pred, y_score, efforts, num_bugs)
            except Exception as exc:
                error = EvaluationError(
                    model.name,
                    identity.experiment,
                    identity.version,
                    identity.repeat,
                    identity.fold,
                    str(exc),
                )
                logger.warning(str(error))
                errors.append(error)
                continue
            rows.append(
                ResultRow(
                    experiment=identity.experiment,
                    version=identity.version,
                    repeat=identity.repeat,
                    fold=identity.fold,
                    classifier=model.name,
                    metrics=metrics,
                    efforts=tuple(efforts),
                    num_bugs=tuple(num_bugs),
                )
            )

        write_records(self._output_path, rows, include_header=write_header)
        for row in rows:
            for store in stores:
                try:
                    store.add_result(row)
                except ExperimentError:
                    raise
                except Exception as exc:
                    raise ResultStoreError(type(store).__name__, str(exc)) from exc
        return EvaluationResult(rows, errors)


__all__ = ["DefectPredictionEvaluator"]
