"""Software versions, loaders and version filters."""

from sdp_experiments.core.data.filters import (
    MinDefectiveFilter,
    MinInstancesFilter,
    ProjectFilter,
    apply_filters,
    passes_filters,
)
from sdp_experiments.core.data.loaders import CsvFolderLoader, InMemoryLoader, normalize_label
from sdp_experiments.core.data.protocols import VersionFilter, VersionLoader
from sdp_experiments.core.data.versions import (
    DEFAULT_EFFORT,
    DEFAULT_LABEL,
    EFFORT_COLUMNS,
    SoftwareVersion,
    feature_columns,
    get_efforts,
    get_num_bugs,
    validate_version,
)

__all__ = [
    "DEFAULT_EFFORT",
    "DEFAULT_LABEL",
    "EFFORT_COLUMNS",
    "SoftwareVersion",
    "feature_columns",
    "get_efforts",
    "get_num_bugs",
    "validate_version",
    "VersionFilter",
    "VersionLoader",
    "CsvFolderLoader",
    "InMemoryLoader",
    "normalize_label",
    "MinDefectiveFilter",
    "MinInstancesFilter",
    "ProjectFilter",
    "apply_filters",
    "passes_filters",
]
