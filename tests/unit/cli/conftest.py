"""Shared fixtures for CLI unit tests."""

from typing import Generator
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Fixture providing a CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_container() -> Generator[MagicMock, None, None]:
    """Fixture providing a mocked DI container.

    Patches the container in all CLI modules to ensure mock is used.
    """
    mock = MagicMock()

    with (
        patch("sdp_experiments.cli.experiment.container", mock),
        patch("sdp_experiments.cli.analysis.container", mock),
    ):
        yield mock


@pytest.fixture
def mock_experiment_executor(mock_container: MagicMock) -> MagicMock:
    """Fixture providing a mocked experiment executor from the container."""
    executor = MagicMock()
    executor.execute.return_value = []
    mock_container.experiment_executor.return_value = executor
    return executor


@pytest.fixture
def mock_results_summarizer(mock_container: MagicMock) -> MagicMock:
    """Fixture providing a mocked ResultsSummarizer from the container."""
    summarizer = MagicMock()
    summarizer.run.return_value.height = 2
    mock_container.results_summarizer.return_value = summarizer
    return summarizer


@pytest.fixture
def mock_settings(mock_container: MagicMock) -> MagicMock:
    """Fixture providing mocked settings from the container."""
    settings = MagicMock()
    settings.resources.n_jobs = 1
    settings.resources.sequential = False
    mock_container.settings.return_value = settings
    return settings
