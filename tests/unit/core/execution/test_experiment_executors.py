"""Tests for sdp_experiments.core.execution.executors module."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sdp_experiments.config.settings import ExperimentSettings
from sdp_experiments.core.errors import ConfigurationError, DataError
from sdp_experiments.core.execution.executors import (
    ParallelExecutor,
    SequentialExecutor,
    create_executor,
    run_experiment,
)
from sdp_experiments.core.experiment.configuration import ExperimentConfig
from sdp_experiments.core.experiment.engine import ExperimentOutcome, ExperimentState


def _config(name: str, path: Path) -> ExperimentConfig:
    return ExperimentConfig.model_validate(
        {
            "name": name,
            "results_path": str(path / "results"),
            "loaders": [{"name": "csv_folder", "params": {"path": str(path / "data")}}],
            "trainers": [{"name": "sklearn", "params": {"classifier": "NB"}}],
        }
    )


def _completed(config: ExperimentConfig, settings: ExperimentSettings) -> ExperimentOutcome:
    return ExperimentOutcome(config.name, state=ExperimentState.COMPLETED)


@pytest.fixture
def settings() -> ExperimentSettings:
    """Fixture providing experiment settings with a single short repeat."""
    return ExperimentSettings(repeats=1, folds=2)


class DescribeRunExperiment:
    """Tests for run_experiment."""

    def it_reports_failures_as_failed_outcomes(self, tmp_path: Path, settings) -> None:
        """Verify a missing data folder fails the experiment without raising."""
        outcome = run_experiment(_config("broken", tmp_path), settings)

        assert outcome.state == ExperimentState.FAILED
        assert outcome.failed
        assert isinstance(outcome.errors[0], DataError)

    def it_reports_errors_while_building(self, tmp_path: Path, settings) -> None:
        """Verify setup errors produce a failed outcome named after the config."""
        config = _config("bad-params", tmp_path)
        config.trainers[0].params["classifier"] = "GBM"

        outcome = run_experiment(config, settings)

        assert outcome.name == "bad-params"
        assert outcome.failed
        assert isinstance(outcome.errors[0], ConfigurationError)

    def it_wraps_unexpected_exceptions(self, tmp_path: Path, settings) -> None:
        """Verify non experiment errors are recorded as experiment errors."""
        with patch(
            "sdp_experiments.core.execution.executors.build_experiment_setup",
            side_effect=RuntimeError("boom"),
        ):
            outcome = run_experiment(_config("crash", tmp_path), settings)

        assert outcome.failed
        assert "RuntimeError: boom" in str(outcome.errors[0])


class DescribeSequentialExecutor:
    """Tests for SequentialExecutor."""

    def it_runs_every_config_in_order(self, tmp_path: Path, settings) -> None:
        """Verify outcomes come back in input order."""
        runner = MagicMock(side_effect=_completed)
        configs = [_config("b", tmp_path), _config("a", tmp_path)]

        outcomes = SequentialExecutor(runner).execute(configs, settings)

        assert [o.name for o in outcomes] == ["b", "a"]
        assert runner.call_count == 2
        runner.assert_any_call(configs[0], settings)

    def it_keeps_going_after_a_failure(self, tmp_path: Path, settings) -> None:
        """Verify one failing experiment does not stop the others."""

        def runner(config, settings):
            state = ExperimentState.FAILED if config.name == "a" else ExperimentState.COMPLETED
            return ExperimentOutcome(config.name, state=state)

        outcomes = SequentialExecutor(runner).execute(
            [_config("a", tmp_path), _config("b", tmp_path)], settings
        )

        assert [o.state for o in outcomes] == [ExperimentState.FAILED, ExperimentState.COMPLETED]

    def it_rejects_duplicate_names(self, tmp_path: Path, settings) -> None:
        """Verify two experiments may not share a result file."""
        runner = MagicMock(side_effect=_completed)

        with pytest.raises(ConfigurationError, match="duplicated: same"):
            SequentialExecutor(runner).execute(
                [_config("same", tmp_path), _config("same", tmp_path)], settings
            )

        runner.assert_not_called()


class DescribeParallelExecutor:
    """Tests for ParallelExecutor."""

    def it_runs_every_config_concurrently(self, tmp_path: Path, settings) -> None:
        """Verify all experiments run and outcomes keep the input order."""
        configs = [_config(name, tmp_path) for name in ("c", "a", "b")]

        outcomes = ParallelExecutor(n_jobs=2, runner=_completed).execute(configs, settings)

        assert [o.name for o in outcomes] == ["c", "a", "b"]
        assert all(o.state == ExperimentState.COMPLETED for o in outcomes)

    def it_rejects_duplicate_names(self, tmp_path: Path, settings) -> None:
        """Verify duplicate names are rejected before anything runs."""
        with pytest.raises(ConfigurationError):
            ParallelExecutor(n_jobs=2, runner=_completed).execute(
                [_config("x", tmp_path), _config("x", tmp_path)], settings
            )


class DescribeCreateExecutor:
    """Tests for create_executor."""

    def it_runs_sequentially_with_one_job(self) -> None:
        """Verify a single job yields a sequential executor."""
        assert isinstance(create_executor(n_jobs=1), SequentialExecutor)

    def it_honors_the_sequential_flag(self) -> None:
        """Verify sequential wins over the job count."""
        assert isinstance(create_executor(n_jobs=8, sequential=True), SequentialExecutor)

    def it_runs_in_parallel_with_several_jobs(self) -> None:
        """Verify several jobs yield a parallel executor."""
        executor = create_executor(n_jobs=4)

        assert isinstance(executor, ParallelExecutor)
        assert executor.n_jobs == 4
