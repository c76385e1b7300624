"""Version filter implementations."""

from collections.abc import MutableSequence, Sequence

from loguru import logger
import polars as pl

from sdp_experiments.core.data.protocols import VersionFilter
from sdp_experiments.core.data.versions import SoftwareVersion
from sdp_experiments.core.registry import StrategyKind, register_strategy


def passes_filters(version: SoftwareVersion, filters: Sequence[VersionFilter]) -> bool:
    """Check that no filter rejects the version."""
    return not any(version_filter.rejects(version) for version_filter in filters)


def apply_filters(
    filters: Sequence[VersionFilter], versions: MutableSequence[SoftwareVersion]
) -> None:
    """Remove every version rejected by any of the filters, in place.

    Args:
        filters: The filters to apply.
        versions: The versions to prune.
    """
    kept: list[SoftwareVersion] = []
    for version in versions:
        if passes_filters(version, filters):
            kept.append(version)
        else:
            logger.debug(f"Filtered out version {version.id}")
    versions[:] = kept


@register_strategy(StrategyKind.VERSION_FILTER, "min_instances")
class MinInstancesFilter:
    """Rejects versions with fewer instances than a threshold."""

    def __init__(self, min_instances: int) -> None:
        if min_instances < 0:
            raise ValueError("min_instances must not be negative")
        self._min_instances = min_instances

    def rejects(self, version: SoftwareVersion) -> bool:
        return version.num_instances < self._min_instances


@register_strategy(StrategyKind.VERSION_FILTER, "min_defective")
class MinDefectiveFilter:
    """Rejects versions with fewer defective instances than a threshold.

    An instance is defective when its label is greater than zero. Versions
    without a usable label are rejected.
    """

    def __init__(self, min_defective: int = 1) -> None:
        if min_defective < 0:
            raise ValueError("min_defective must not be negative")
        self._min_defective = min_defective

    def rejects(self, version: SoftwareVersion) -> bool:
        if version.label not in version.instances.columns:
            return True
        labels = version.instances.get_column(version.label).cast(pl.Float64, strict=False)
        return int((labels > 0).sum()) < self._min_defective


@register_strategy(StrategyKind.VERSION_FILTER, "project")
class ProjectFilter:
    """Rejects versions by project name.

    Args:
        include: If given, only versions of these projects pass.
        exclude: Versions of these projects are rejected.
    """

    def __init__(
        self,
        include: Sequence[str] | None = None,
        exclude: Sequence[str] | None = None,
    ) -> None:
        if include is None and exclude is None:
            raise ValueError("either include or exclude must be given")
        self._include = set(include) if include is not None else None
        self._exclude = set(exclude or ())

    def rejects(self, version: SoftwareVersion) -> bool:
        if self._include is not None and version.project not in self._include:
            return True
        return version.project in self._exclude


__all__ = [
    "passes_filters",
    "apply_filters",
    "MinInstancesFilter",
    "MinDefectiveFilter",
    "ProjectFilter",
]
