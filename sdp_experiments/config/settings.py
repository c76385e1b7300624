"""Application settings using Pydantic Settings.

This module defines the SdpSettings class which loads configuration
from environment variables and .env files using pydantic-settings.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).resolve().parent.parent.parent


class PathSettings(BaseSettings):
    """Path-related settings."""

    model_config = SettingsConfigDict(
        env_prefix="SDP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_root: Path = Field(default_factory=_get_project_root)

    @property
    def results_dir(self) -> Path:
        return self.project_root / "results"

    @property
    def summaries_dir(self) -> Path:
        return self.results_dir / "summaries"


class ExperimentSettings(BaseSettings):
    """Experiment-related settings.

    These values are the defaults applied to experiment configuration files
    that do not set them explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="SDP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    repeats: int = Field(default=10, ge=1, description="Number of cross-validation repetitions")
    folds: int = Field(default=10, ge=2, description="Number of cross-validation folds")
    resume: bool = Field(
        default=False,
        description="Skip versions whose results are already present in the result stores",
    )


class ResourceSettings(BaseSettings):
    """Resource-related settings."""

    model_config = SettingsConfigDict(
        env_prefix="SDP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    n_jobs: int = Field(default=1, ge=1, description="Experiments executed concurrently")
    sequential: bool = Field(
        default=False,
        description="Run experiments one after the other, ignoring n_jobs",
    )


class LoggingSettings(BaseSettings):
    """Logging-related settings."""

    model_config = SettingsConfigDict(
        env_prefix="SDP_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = Field(default="INFO", description="Minimum level of the stderr sink")
    serialize: bool = Field(default=False, description="Emit JSON records instead of text")
    debug: bool = Field(default=False, description="Include variable values in tracebacks")


class SdpSettings(BaseSettings):
    """Root settings class that composes all settings groups."""

    model_config = SettingsConfigDict(
        env_prefix="SDP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    paths: PathSettings = Field(default_factory=PathSettings)
    experiment: ExperimentSettings = Field(default_factory=ExperimentSettings)
    resources: ResourceSettings = Field(default_factory=ResourceSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
