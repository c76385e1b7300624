"""Training corpus assembly.

A training policy decides which versions may contribute training data for a
test version. Policies are plain functions registered by name:

    ```python
    @register_strategy(StrategyKind.TRAINING_POLICY, "all_other_versions")
    def all_other_versions(candidate, test_version, versions) -> bool:
        return candidate is not test_version
    ```
"""

from collections.abc import Callable, Iterable, Sequence
from typing import TypeAlias

import polars as pl

from sdp_experiments.core.data.filters import passes_filters
from sdp_experiments.core.data.protocols import VersionFilter
from sdp_experiments.core.data.versions import SoftwareVersion
from sdp_experiments.core.errors import EmptyTrainingDataError
from sdp_experiments.core.experiment.protocols import TrainingSlice
from sdp_experiments.core.registry import StrategyKind, register_strategy

TrainingPolicy: TypeAlias = Callable[[SoftwareVersion, SoftwareVersion, Sequence[SoftwareVersion]], bool]
"""Predicate `(candidate, test_version, versions) -> bool`."""


@register_strategy(StrategyKind.TRAINING_POLICY, "all_versions")
def all_versions(
    candidate: SoftwareVersion, test_version: SoftwareVersion, versions: Sequence[SoftwareVersion]
) -> bool:
    """Every version trains, including the complementary slice of the test version."""
    return True


@register_strategy(StrategyKind.TRAINING_POLICY, "all_other_versions")
def all_other_versions(
    candidate: SoftwareVersion, test_version: SoftwareVersion, versions: Sequence[SoftwareVersion]
) -> bool:
    """Every version except the test version trains."""
    return candidate is not test_version


@register_strategy(StrategyKind.TRAINING_POLICY, "other_projects")
def other_projects(
    candidate: SoftwareVersion, test_version: SoftwareVersion, versions: Sequence[SoftwareVersion]
) -> bool:
    """Only versions of other projects train."""
    return candidate.project != test_version.project


@register_strategy(StrategyKind.TRAINING_POLICY, "past_versions")
def past_versions(
    candidate: SoftwareVersion, test_version: SoftwareVersion, versions: Sequence[SoftwareVersion]
) -> bool:
    """Only earlier versions of the same project train."""
    return candidate.project == test_version.project and candidate < test_version


class TrainingCorpusAssembler:
    """Collects the training slices eligible for a test version.

    Args:
        policy: The training policy.
        training_filters: Filters a version must pass to contribute training data.
    """

    def __init__(
        self,
        policy: TrainingPolicy,
        training_filters: Sequence[VersionFilter] = (),
    ) -> None:
        self._policy = policy
        self._training_filters = tuple(training_filters)

    def assemble(
        self,
        test_version: SoftwareVersion,
        candidates: Iterable[TrainingSlice],
        versions: Sequence[SoftwareVersion],
    ) -> tuple[TrainingSlice, ...]:
        """Build the corpus of a test version.

        The policy is evaluated once per candidate. A slice is added at most
        once, even if it is offered several times.

        Args:
            test_version: The version being tested.
            candidates: One slice per version for the current repeat and fold.
            versions: All versions of the experiment.

        Returns:
            The eligible slices, in candidate order.
        """
        seen: dict[int, TrainingSlice] = {}
        corpus: list[TrainingSlice] = []
        for candidate in candidates:
            if id(candidate) in seen:
                continue
            seen[id(candidate)] = candidate
            if not self._policy(candidate.version, test_version, versions):
                continue
            if not passes_filters(candidate.version, self._training_filters):
                continue
            corpus.append(candidate)
        return tuple(corpus)

    @staticmethod
    def merge_slices(slices: Sequence[TrainingSlice]) -> pl.DataFrame:
        """Concatenate the rows of all slices into a new frame.

        Columns missing from a slice are filled with nulls; the slices are not
        modified.

        Raises:
            EmptyTrainingDataError: If there are no slices.
        """
        if not slices:
            raise EmptyTrainingDataError()
        return pl.concat([s.data for s in slices], how="diagonal_relaxed", rechunk=True)


__all__ = [
    "TrainingPolicy",
    "all_versions",
    "all_other_versions",
    "other_projects",
    "past_versions",
    "TrainingCorpusAssembler",
]
