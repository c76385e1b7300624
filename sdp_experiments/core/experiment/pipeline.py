"""The ordered chain of strategy stages applied in every fold iteration.

Stages run in a fixed order:

1. set-wise preprocessors, selectors and postprocessors
2. set-wise trainers, then set-wise test-aware trainers
3. merge of the training slices into one table
4. point-wise preprocessors, selectors and postprocessors
5. point-wise trainers, then point-wise test-aware trainers

Each stage receives a frozen stage value and returns a new one. Point-wise
stages only ever see the merged data.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from loguru import logger
import polars as pl

from sdp_experiments.core.errors import (
    EmptyTrainingDataError,
    ExperimentError,
    StageError,
    TrainerFitError,
)
from sdp_experiments.core.experiment.corpus import TrainingCorpusAssembler
from sdp_experiments.core.experiment.protocols import (
    IterationIdentity,
    PointWiseData,
    PointWiseProcessor,
    PointWiseSelector,
    SetWiseData,
    SetWiseProcessor,
    SetWiseSelector,
    SetWiseTestAwareTrainingStrategy,
    SetWiseTrainingStrategy,
    TestAwareTrainingStrategy,
    TrainedModel,
    TrainingSlice,
    TrainingStrategy,
)

D = TypeVar("D", SetWiseData, PointWiseData)


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Outcome of the stages of one fold iteration.

    Attributes:
        data: The point-wise data after the last point-wise stage.
        models: The trained models, in training order.
        errors: The trainers that failed to fit.
    """

    data: PointWiseData
    models: list[TrainedModel] = field(default_factory=list)
    errors: list[TrainerFitError] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class StrategyPipeline:
    """The strategies of an experiment, grouped by stage."""

    setwise_preprocessors: Sequence[SetWiseProcessor] = ()
    setwise_selectors: Sequence[SetWiseSelector] = ()
    setwise_postprocessors: Sequence[SetWiseProcessor] = ()
    setwise_trainers: Sequence[SetWiseTrainingStrategy] = ()
    setwise_testaware_trainers: Sequence[SetWiseTestAwareTrainingStrategy] = ()
    preprocessors: Sequence[PointWiseProcessor] = ()
    pointwise_selectors: Sequence[PointWiseSelector] = ()
    postprocessors: Sequence[PointWiseProcessor] = ()
    trainers: Sequence[TrainingStrategy] = ()
    testaware_trainers: Sequence[TestAwareTrainingStrategy] = ()

    @property
    def trainer_names(self) -> list[str]:
        """Names of all trainers, in the order their models are evaluated."""
        return [
            t.name
            for group in (
                self.setwise_trainers,
                self.setwise_testaware_trainers,
                self.trainers,
                self.testaware_trainers,
            )
            for t in group
        ]

    @staticmethod
    def _apply(
        stage: str, strategy: Any, call: Callable[[D], D], data: D
    ) -> D:
        name = getattr(strategy, "name", type(strategy).__name__)
        try:
            result = call(data)
        except ExperimentError:
            raise
        except Exception as exc:
            raise StageError(stage, name, str(exc)) from exc
        if not isinstance(result, type(data)):
            raise StageError(
                stage,
                name,
                f"returned {type(result).__name__}, expected {type(data).__name__}",
            )
        return result

    @staticmethod
    def _fit(
        trainer: Any,
        identity: IterationIdentity,
        models: list[TrainedModel],
        errors: list[TrainerFitError],
        *args: Any,
    ) -> None:
        try:
            model = trainer.fit(*args)
        except Exception as exc:
            error = TrainerFitError(
                trainer.name,
                identity.experiment,
                identity.version,
                identity.repeat,
                identity.fold,
                str(exc),
            )
            logger.warning(str(error))
            errors.append(error)
            return
        models.append(model)

    def run(
        self,
        test: pl.DataFrame,
        training_sets: tuple[TrainingSlice, ...],
        label: str,
        identity: IterationIdentity,
    ) -> PipelineResult:
        """Run every stage for one fold iteration.

        Args:
            test: The test rows.
            training_sets: The assembled training corpus.
            label: Name of the label column.
            identity: The iteration being run.

        Returns:
            The final point-wise data with the trained models.

        Raises:
            StageError: If a processor or selector fails.
            EmptyTrainingDataError: If no training slice is left to merge.
        """
        setwise = SetWiseData(test=test, training_sets=training_sets, label=label)
        for processor in self.setwise_preprocessors:
            setwise = self._apply("setwise preprocessor", processor, processor.process, setwise)
        for selector in self.setwise_selectors:
            setwise = self._apply("setwise selector", selector, selector.select, setwise)
        for processor in self.setwise_postprocessors:
            setwise = self._apply("setwise postprocessor", processor, processor.process, setwise)

        if not setwise.training_sets:
            raise EmptyTrainingDataError(
                identity.experiment, identity.version, identity.repeat, identity.fold
            )

        models: list[TrainedModel] = []
        errors: list[TrainerFitError] = []
        for trainer in self.setwise_trainers:
            self._fit(trainer, identity, models, errors, setwise.training_sets, label)
        for trainer in self.setwise_testaware_trainers:
            self._fit(
                trainer, identity, models, errors, setwise.training_sets, setwise.test, label
            )

        data = PointWiseData(
            test=setwise.test,
            training=TrainingCorpusAssembler.merge_slices(setwise.training_sets),
            label=label,
        )
        for processor in self.preprocessors:
            data = self._apply("preprocessor", processor, processor.process, data)
        for selector in self.pointwise_selectors:
            data = self._apply("pointwise selector", selector, selector.select, data)
        for processor in self.postprocessors:
            data = self._apply("postprocessor", processor, processor.process, data)

        for trainer in self.trainers:
            self._fit(trainer, identity, models, errors, data.training, label)
        for trainer in self.testaware_trainers:
            self._fit(trainer, identity, models, errors, data.training, data.test, label)

        return PipelineResult(data, models, errors)


__all__ = ["PipelineResult", "StrategyPipeline"]
