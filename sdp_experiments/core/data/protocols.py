"""Protocol definitions for loading and filtering software versions.

Loaders and filters are external collaborators of the experiment engine:
the engine only depends on these interfaces.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sdp_experiments.core.data.versions import SoftwareVersion


@runtime_checkable
class VersionLoader(Protocol):
    """Protocol for loading software versions.

    An experiment may use several loaders; their versions are accumulated.
    """

    def load(self) -> list[SoftwareVersion]:
        """Load the versions provided by this loader.

        Returns:
            The loaded versions, in any order.
        """
        ...


@runtime_checkable
class VersionFilter(Protocol):
    """Protocol for predicates that remove versions from an experiment."""

    def rejects(self, version: SoftwareVersion) -> bool:
        """Check whether the version must be filtered out.

        Args:
            version: The version to check.

        Returns:
            True if the version is rejected by this filter.
        """
        ...
