"""Cross-validation experiment engine.

The engine loads and filters the versions of an experiment, then for every
repeat and fold and every test version assembles a training corpus, runs the
strategy pipeline and hands the trained models to the evaluator:

    ```python
    experiment = CrossValidationExperiment(setup)
    outcome = experiment.run()
    ```
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import enum
from pathlib import Path

from loguru import logger
import polars as pl

from sdp_experiments.core.data.filters import apply_filters, passes_filters
from sdp_experiments.core.data.protocols import VersionFilter, VersionLoader
from sdp_experiments.core.data.versions import (
    DEFAULT_LABEL,
    SoftwareVersion,
    get_efforts,
    get_num_bugs,
    validate_version,
)
from sdp_experiments.core.errors import (
    ConfigurationError,
    DataError,
    EmptyTrainingDataError,
    ExperimentError,
    StageError,
)
from sdp_experiments.core.experiment.corpus import TrainingCorpusAssembler, TrainingPolicy
from sdp_experiments.core.experiment.persisters import CsvResultStore
from sdp_experiments.core.experiment.pipeline import StrategyPipeline
from sdp_experiments.core.experiment.protocols import (
    Evaluator,
    FoldSplit,
    IterationIdentity,
    ResultStore,
    SliceRoles,
    TrainingSlice,
)
from sdp_experiments.core.experiment.splitters import RepeatedFoldPartitioner


class ExperimentState(enum.StrEnum):
    """Lifecycle of an experiment run."""

    INITIALIZING = "initializing"
    LOADING = "loading"
    FILTERING = "filtering"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class HeaderState:
    """Whether the header row of the experiment's result file was written.

    Only the first row ever written for an experiment carries the header.
    """

    written: bool = False

    @property
    def pending(self) -> bool:
        return not self.written

    def mark_written(self) -> None:
        self.written = True


@dataclass(slots=True)
class ExperimentOutcome:
    """Summary of an experiment run.

    Attributes:
        name: Name of the experiment.
        state: Final state of the run.
        rows_written: Number of result rows written.
        errors: Recoverable errors (skipped iterations, failed trainers) and,
            for failed runs, the fatal error.
        dropped_versions: Ids of versions removed because their data is unusable.
        skipped_versions: Ids of versions skipped because their results exist.
    """

    name: str
    state: ExperimentState = ExperimentState.INITIALIZING
    rows_written: int = 0
    errors: list[ExperimentError] = field(default_factory=list)
    dropped_versions: list[str] = field(default_factory=list)
    skipped_versions: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.state == ExperimentState.FAILED

    @property
    def succeeded(self) -> bool:
        return self.state == ExperimentState.COMPLETED and not self.errors


@dataclass(frozen=True, slots=True)
class ExperimentSetup:
    """Everything an experiment run needs, with strategies already resolved.

    Attributes:
        name: Name of the experiment, used in result rows and file names.
        results_path: Directory of the result file.
        loaders: Loaders whose versions are accumulated.
        pipeline: The strategy stages.
        evaluator: Scores the trained models and writes result rows.
        training_policy: Which versions may train for a test version.
        version_filters: Remove versions from the whole run.
        test_filters: A version is tested only if no test filter rejects it.
        training_filters: A version trains only if no training filter rejects it.
        result_stores: Receive every result row; queried on resume.
        label: Name of the label column.
        slice_roles: Which half of a fold split is tested.
        repeats: Number of repeats.
        folds: Number of folds per repeat.
        resume: Skip versions whose results are already stored.
    """

    name: str
    results_path: Path
    loaders: Sequence[VersionLoader]
    pipeline: StrategyPipeline
    evaluator: Evaluator
    training_policy: TrainingPolicy
    version_filters: Sequence[VersionFilter] = ()
    test_filters: Sequence[VersionFilter] = ()
    training_filters: Sequence[VersionFilter] = ()
    result_stores: Sequence[ResultStore] = ()
    label: str = DEFAULT_LABEL
    slice_roles: SliceRoles = SliceRoles.STANDARD
    repeats: int = 10
    folds: int = 10
    resume: bool = False

    @property
    def output_path(self) -> Path:
        return Path(self.results_path) / f"{self.name}.csv"


class CrossValidationExperiment:
    """Runs one experiment over repeated k-fold splits of every version."""

    def __init__(self, setup: ExperimentSetup) -> None:
        self._setup = setup
        self._state = ExperimentState.INITIALIZING
        self._outcome = ExperimentOutcome(setup.name)
        self._partitioner = RepeatedFoldPartitioner(setup.repeats, setup.folds)
        self._assembler = TrainingCorpusAssembler(setup.training_policy, setup.training_filters)

    @property
    def name(self) -> str:
        return self._setup.name

    @property
    def state(self) -> ExperimentState:
        return self._state

    @property
    def outcome(self) -> ExperimentOutcome:
        return self._outcome

    def _set_state(self, state: ExperimentState) -> None:
        self._state = state
        self._outcome.state = state
        logger.debug(f"Experiment {self.name} is {state}")

    def _check_setup(self) -> None:
        if not self._setup.loaders:
            raise ConfigurationError(f"experiment '{self.name}' has no loaders")
        if not self._setup.pipeline.trainer_names:
            raise ConfigurationError(f"experiment '{self.name}' has no trainers")

    def _load(self) -> list[SoftwareVersion]:
        versions: list[SoftwareVersion] = []
        for loader in self._setup.loaders:
            versions.extend(loader.load())
        ids = [v.id for v in versions]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ConfigurationError(f"duplicate version ids: {', '.join(duplicates)}")
        logger.info(f"Loaded {len(versions)} versions")
        return versions

    def _filter(self, versions: list[SoftwareVersion]) -> list[SoftwareVersion]:
        usable: list[SoftwareVersion] = []
        for version in versions:
            try:
                validate_version(version, self._setup.label, self._setup.folds)
            except DataError as exc:
                logger.warning(f"Dropping version: {exc}")
                self._outcome.dropped_versions.append(version.id)
                continue
            usable.append(version)
        apply_filters(self._setup.version_filters, usable)
        usable.sort()
        logger.info(f"{len(usable)} versions left after filtering")
        return usable

    def _completed_versions(self, test_versions: Sequence[SoftwareVersion]) -> set[str]:
        """Ids of the versions whose results every store already holds.

        The experiment's own result file counts as a store, so a resumed run
        never appends rows that file already holds.
        """
        if not self._setup.resume:
            return set()
        stores = [CsvResultStore(self._setup.results_path), *self._setup.result_stores]
        first_trainer = self._setup.pipeline.trainer_names[0]
        expected = self._setup.repeats * self._setup.folds
        completed: set[str] = set()
        for version in test_versions:
            stored = min(
                store.contains_result(self.name, version.id, first_trainer)
                for store in stores
            )
            if stored >= expected:
                logger.info(f"Results of {version.id} already available, skipping")
                completed.add(version.id)
        return completed

    def _initial_header_state(self) -> HeaderState:
        path = self._setup.output_path
        resumed = self._setup.resume and path.exists() and path.stat().st_size > 0
        return HeaderState(written=resumed)

    def _test_half(self, split: FoldSplit) -> pl.DataFrame:
        return split.test if self._setup.slice_roles == SliceRoles.STANDARD else split.train

    def _training_half(self, split: FoldSplit) -> pl.DataFrame:
        return split.train if self._setup.slice_roles == SliceRoles.STANDARD else split.test

    def _run_iteration(
        self,
        version: SoftwareVersion,
        test: pl.DataFrame,
        candidates: Sequence[TrainingSlice],
        versions: Sequence[SoftwareVersion],
        identity: IterationIdentity,
        header: HeaderState,
    ) -> None:
        setup = self._setup
        efforts = get_efforts(test)
        num_bugs = get_num_bugs(test, setup.label)
        try:
            corpus = self._assembler.assemble(version, candidates, versions)
            if not corpus:
                raise EmptyTrainingDataError(
                    identity.experiment, identity.version, identity.repeat, identity.fold
                )
            result = setup.pipeline.run(test, corpus, setup.label, identity)
        except (EmptyTrainingDataError, StageError) as exc:
            logger.warning(f"Skipping iteration: {exc}")
            self._outcome.errors.append(exc)
            return

        self._outcome.errors.extend(result.errors)
        evaluation = setup.evaluator.evaluate(
            result.data.test,
            result.data.training,
            result.models,
            efforts,
            num_bugs,
            header.pending,
            list(setup.result_stores),
            identity,
            setup.label,
        )
        self._outcome.errors.extend(evaluation.errors)
        if evaluation.rows:
            header.mark_written()
            self._outcome.rows_written += len(evaluation.rows)

    def _run_loops(self, versions: list[SoftwareVersion]) -> None:
        setup = self._setup
        test_versions = [v for v in versions if passes_filters(v, setup.test_filters)]
        completed = self._completed_versions(test_versions)
        self._outcome.skipped_versions.extend(v.id for v in test_versions if v.id in completed)
        header = self._initial_header_state()

        total = setup.repeats * setup.folds * len(test_versions)
        current = 0
        for repeat in range(setup.repeats):
            shuffled = [self._partitioner.shuffle(v.instances, repeat) for v in versions]
            for fold in range(setup.folds):
                splits = [self._partitioner.split(s, fold) for s in shuffled]
                candidates = [
                    TrainingSlice(v, repeat, fold, self._training_half(split))
                    for v, split in zip(versions, splits, strict=True)
                ]
                for version, split in zip(versions, splits, strict=True):
                    if not any(version is t for t in test_versions):
                        continue
                    current += 1
                    if version.id in completed:
                        continue
                    logger.info(
                        f"[{self.name}] [{current:02d}/{total:02d}] {version.id}: "
                        f"repeat {repeat}, fold {fold}"
                    )
                    identity = IterationIdentity(self.name, version.id, repeat, fold)
                    with logger.contextualize(version=version.id, repeat=repeat, fold=fold):
                        self._run_iteration(
                            version, self._test_half(split), candidates, versions, identity, header
                        )

    def run(self) -> ExperimentOutcome:
        """Run the experiment.

        Returns:
            The outcome of the run.

        Raises:
            ConfigurationError: If the experiment is wired incorrectly.
            ResultStoreError: If results cannot be written.
            DataError: If a loader fails.
        """
        with logger.contextualize(experiment=self.name):
            try:
                self._check_setup()
                self._set_state(ExperimentState.LOADING)
                versions = self._load()
                self._set_state(ExperimentState.FILTERING)
                versions = self._filter(versions)
                self._set_state(ExperimentState.RUNNING)
                self._setup.evaluator.configure(self._setup.output_path)
                self._run_loops(versions)
            except Exception as exc:
                if isinstance(exc, ExperimentError):
                    self._outcome.errors.append(exc)
                self._set_state(ExperimentState.FAILED)
                logger.error(f"Experiment {self.name} failed: {exc}")
                raise

            self._set_state(ExperimentState.COMPLETED)
            logger.success(
                f"Experiment {self.name} completed: {self._outcome.rows_written} rows, "
                f"{len(self._outcome.errors)} errors"
            )
        return self._outcome


__all__ = [
    "ExperimentState",
    "HeaderState",
    "ExperimentOutcome",
    "ExperimentSetup",
    "CrossValidationExperiment",
]
