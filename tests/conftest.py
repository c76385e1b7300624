"""Shared fixtures for the test suite."""

from collections.abc import Callable, Generator
from typing import Any, TypeAlias

import numpy as np
import polars as pl
import pytest

from sdp_experiments.core import registry
from sdp_experiments.core.data.versions import SoftwareVersion

VersionFactory: TypeAlias = Callable[..., SoftwareVersion]


def build_instances(
    n_rows: int,
    seed: int = 0,
    defect_rate: float = 0.3,
    with_loc: bool = True,
    label: str = "bug",
) -> pl.DataFrame:
    """Build instances whose features separate defective from clean rows."""
    rng = np.random.default_rng(seed)
    bugs = (rng.random(n_rows) < defect_rate).astype(np.int64)
    bugs[0], bugs[1] = 1, 0
    data: dict[str, Any] = {
        "wmc": rng.normal(10.0, 2.0, n_rows) + 6.0 * bugs,
        "cbo": rng.normal(5.0, 1.0, n_rows) + 3.0 * bugs,
    }
    if with_loc:
        data["loc"] = rng.integers(10, 500, n_rows).astype(np.float64)
    data[label] = bugs
    return pl.DataFrame(data)


@pytest.fixture
def version_factory() -> VersionFactory:
    """Fixture providing a factory of synthetic software versions."""

    def factory(
        project: str = "ant",
        version: str | None = None,
        n_rows: int = 100,
        seed: int = 0,
        **kwargs: Any,
    ) -> SoftwareVersion:
        return SoftwareVersion(
            project=project,
            version=version or f"{project}-{seed}",
            instances=build_instances(n_rows, seed=seed, **kwargs),
        )

    return factory


@pytest.fixture
def two_versions(version_factory: VersionFactory) -> list[SoftwareVersion]:
    """Fixture providing two versions of 100 rows from different projects."""
    return [
        version_factory("ant", "ant-1.7", seed=1),
        version_factory("camel", "camel-1.6", seed=2),
    ]


@pytest.fixture
def isolated_registry() -> Generator[None, None, None]:
    """Fixture restoring the strategy registry after the test."""
    snapshot = {kind: table.copy() for kind, table in registry._STRATEGY_REGISTRY.items()}
    yield
    for kind, table in snapshot.items():
        registry._STRATEGY_REGISTRY[kind] = table


class ConstantModel:
    """Model predicting the same score for every row."""

    def __init__(self, name: str, score: float = 1.0) -> None:
        self.name = name
        self._score = score

    def predict(self, features: pl.DataFrame) -> np.ndarray:
        return np.full(features.height, int(self._score >= 0.5))

    def predict_score(self, features: pl.DataFrame) -> np.ndarray:
        return np.full(features.height, self._score)


class RecordingTrainer:
    """Point-wise trainer recording what it was fitted on.

    Args:
        name: Name of the trainer and its models.
        fail_on: Predicate on the training rows; when it holds, fit raises.
    """

    def __init__(self, name: str = "CONST", fail_on: Callable[[pl.DataFrame], bool] | None = None):
        self.name = name
        self.fail_on = fail_on
        self.fitted_on: list[pl.DataFrame] = []

    def fit(self, training: pl.DataFrame, label: str) -> ConstantModel:
        if self.fail_on is not None and self.fail_on(training):
            raise RuntimeError("boom")
        self.fitted_on.append(training)
        return ConstantModel(self.name)


@pytest.fixture
def recording_trainer() -> RecordingTrainer:
    """Fixture providing a point-wise trainer that always succeeds."""
    return RecordingTrainer()


@pytest.fixture
def trainer_class() -> type[RecordingTrainer]:
    """Fixture providing the recording trainer class, for custom instances."""
    return RecordingTrainer
