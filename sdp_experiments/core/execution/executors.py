"""Executors running several independent experiments."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TypeAlias

from joblib import Parallel, delayed
from loguru import logger

from sdp_experiments.config.settings import ExperimentSettings
from sdp_experiments.core.errors import ConfigurationError, ExperimentError
from sdp_experiments.core.experiment.configuration import ExperimentConfig, build_experiment_setup
from sdp_experiments.core.experiment.engine import (
    CrossValidationExperiment,
    ExperimentOutcome,
    ExperimentState,
)

ExperimentRunner: TypeAlias = Callable[[ExperimentConfig, ExperimentSettings], ExperimentOutcome]
"""Runs one experiment and reports its outcome without raising."""


def run_experiment(config: ExperimentConfig, settings: ExperimentSettings) -> ExperimentOutcome:
    """Build and run one experiment in isolation.

    Failures are logged and reported as a failed outcome so that sibling
    experiments keep running.

    Args:
        config: The experiment configuration.
        settings: Defaults for repeats, folds and resume.

    Returns:
        The outcome of the experiment.
    """
    experiment: CrossValidationExperiment | None = None
    try:
        experiment = CrossValidationExperiment(build_experiment_setup(config, settings))
        return experiment.run()
    except Exception as exc:
        outcome = experiment.outcome if experiment is not None else ExperimentOutcome(config.name)
        outcome.state = ExperimentState.FAILED
        if isinstance(exc, ExperimentError):
            if exc not in outcome.errors:
                outcome.errors.append(exc)
        else:
            logger.exception(f"Unexpected error in experiment {config.name}")
            outcome.errors.append(ExperimentError(f"{type(exc).__name__}: {exc}"))
        return outcome


def _ensure_unique_names(configs: Sequence[ExperimentConfig]) -> None:
    names = [c.name for c in configs]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigurationError(
            f"Experiment names must be unique, duplicated: {', '.join(duplicates)}"
        )


class BaseExecutor(ABC):
    """Base class for experiment executors."""

    def __init__(self, runner: ExperimentRunner = run_experiment) -> None:
        """Initialize the executor.

        Args:
            runner: The function running one experiment.
        """
        self._runner = runner

    @abstractmethod
    def execute(
        self,
        configs: Sequence[ExperimentConfig],
        settings: ExperimentSettings,
    ) -> list[ExperimentOutcome]:
        """Run the experiments and return their outcomes, in input order."""
        ...


class SequentialExecutor(BaseExecutor):
    """Runs experiments one after the other."""

    def execute(
        self,
        configs: Sequence[ExperimentConfig],
        settings: ExperimentSettings,
    ) -> list[ExperimentOutcome]:
        _ensure_unique_names(configs)
        return [self._runner(config, settings) for config in configs]


class ParallelExecutor(BaseExecutor):
    """Runs experiments concurrently using joblib threads.

    Every experiment has its own engine, header state and evaluator; shared
    result files are serialized by the result stores.
    """

    def __init__(
        self,
        n_jobs: int = -1,
        verbose: int = 0,
        runner: ExperimentRunner = run_experiment,
    ) -> None:
        """Initialize the parallel executor.

        Args:
            n_jobs: Number of concurrent experiments. -1 means use all processors.
            verbose: Verbosity level for joblib.
            runner: The function running one experiment.
        """
        super().__init__(runner)
        self._n_jobs = n_jobs
        self._verbose = verbose

    @property
    def n_jobs(self) -> int:
        """Get the number of concurrent experiments."""
        return self._n_jobs

    def execute(
        self,
        configs: Sequence[ExperimentConfig],
        settings: ExperimentSettings,
    ) -> list[ExperimentOutcome]:
        _ensure_unique_names(configs)
        logger.info(f"Launching {len(configs)} experiments with {self._n_jobs} workers...")
        results = Parallel(n_jobs=self._n_jobs, verbose=self._verbose, prefer="threads")(
            delayed(self._runner)(config, settings) for config in configs
        )
        return list(results)


def create_executor(n_jobs: int = 1, sequential: bool = False) -> BaseExecutor:
    """Pick the executor for the requested parallelism."""
    if sequential or n_jobs == 1:
        return SequentialExecutor()
    return ParallelExecutor(n_jobs=n_jobs)


__all__ = [
    "ExperimentRunner",
    "run_experiment",
    "BaseExecutor",
    "SequentialExecutor",
    "ParallelExecutor",
    "create_executor",
]
