"""Cross-validation experiment engine and its pipeline components."""

from sdp_experiments.core.experiment.corpus import TrainingCorpusAssembler
from sdp_experiments.core.experiment.engine import (
    CrossValidationExperiment,
    ExperimentOutcome,
    ExperimentSetup,
    ExperimentState,
    HeaderState,
)
from sdp_experiments.core.experiment.evaluators import DefectPredictionEvaluator
from sdp_experiments.core.experiment.persisters import CsvResultStore, InMemoryResultStore
from sdp_experiments.core.experiment.pipeline import PipelineResult, StrategyPipeline
from sdp_experiments.core.experiment.protocols import (
    IterationIdentity,
    PointWiseData,
    ResultRow,
    SetWiseData,
    SliceRoles,
    TrainingSlice,
)
from sdp_experiments.core.experiment.splitters import RepeatedFoldPartitioner

__all__ = [
    "TrainingCorpusAssembler",
    "CrossValidationExperiment",
    "ExperimentOutcome",
    "ExperimentSetup",
    "ExperimentState",
    "HeaderState",
    "DefectPredictionEvaluator",
    "CsvResultStore",
    "InMemoryResultStore",
    "PipelineResult",
    "StrategyPipeline",
    "IterationIdentity",
    "PointWiseData",
    "ResultRow",
    "SetWiseData",
    "SliceRoles",
    "TrainingSlice",
    "RepeatedFoldPartitioner",
]
