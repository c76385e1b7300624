"""Declarative experiment configuration.

Experiments are described by JSON files naming their strategies:

    ```json
    {
        "name": "jureczko-rf",
        "loaders": [{"name": "csv_folder", "params": {"path": "data/jureczko"}}],
        "version_filters": [{"name": "min_instances", "params": {"min_instances": 20}}],
        "training_policy": "other_projects",
        "preprocessors": [{"name": "zscore"}],
        "trainers": [{"name": "sklearn", "params": {"classifier": "RF"}}]
    }
    ```

Strategy names are checked against the registry when the file is validated
and turned into instances once, by `build_experiment_setup`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

from pydantic import (
    BaseModel,
    Field,
    PositiveInt,
    ValidationError,
    field_validator,
    model_validator,
)

from sdp_experiments.config.settings import ExperimentSettings, PathSettings
from sdp_experiments.core.data import filters as _filters  # noqa: F401
from sdp_experiments.core.data import loaders as _loaders  # noqa: F401
from sdp_experiments.core.data.versions import DEFAULT_LABEL
from sdp_experiments.core.errors import ConfigurationError
from sdp_experiments.core.experiment import evaluators as _evaluators  # noqa: F401
from sdp_experiments.core.experiment import persisters as _persisters  # noqa: F401
from sdp_experiments.core.experiment.engine import ExperimentSetup
from sdp_experiments.core.experiment.pipeline import StrategyPipeline
from sdp_experiments.core.experiment.protocols import SliceRoles
from sdp_experiments.core.registry import StrategyKind, create_strategy, get_strategy
import sdp_experiments.core.modeling  # noqa: F401

# Pipeline stage fields and the registry kind of their strategies
STAGE_KINDS: dict[str, StrategyKind] = {
    "setwise_preprocessors": StrategyKind.SETWISE_PROCESSOR,
    "setwise_selectors": StrategyKind.SETWISE_SELECTOR,
    "setwise_postprocessors": StrategyKind.SETWISE_PROCESSOR,
    "setwise_trainers": StrategyKind.SETWISE_TRAINER,
    "setwise_testaware_trainers": StrategyKind.SETWISE_TESTAWARE_TRAINER,
    "preprocessors": StrategyKind.PROCESSOR,
    "pointwise_selectors": StrategyKind.POINTWISE_SELECTOR,
    "postprocessors": StrategyKind.PROCESSOR,
    "trainers": StrategyKind.TRAINER,
    "testaware_trainers": StrategyKind.TESTAWARE_TRAINER,
}

_TRAINER_FIELDS = (
    "setwise_trainers",
    "setwise_testaware_trainers",
    "trainers",
    "testaware_trainers",
)


class StrategySpec(BaseModel):
    """A registered strategy and the keyword parameters of its constructor."""

    name: str
    params: dict[str, Any] = Field(default_factory=dict)

    def build(self, kind: StrategyKind) -> Any:
        return create_strategy(kind, self.name, self.params)


class LoaderSpec(StrategySpec):
    """A registered version loader."""


class ExperimentConfig(BaseModel):
    """An experiment as read from a configuration file."""

    name: str = Field(
        min_length=1,
        json_schema_extra={"description": "Experiment name, used for result files."},
    )
    results_path: Path | None = Field(
        default=None,
        json_schema_extra={"description": "Result directory, defaults to results_dir."},
    )
    loaders: list[LoaderSpec] = Field(min_length=1)
    version_filters: list[StrategySpec] = Field(default_factory=list)
    test_filters: list[StrategySpec] = Field(default_factory=list)
    training_filters: list[StrategySpec] = Field(default_factory=list)
    training_policy: str = "all_other_versions"
    slice_roles: SliceRoles = SliceRoles.STANDARD
    label: str = DEFAULT_LABEL
    repeats: PositiveInt | None = None
    folds: int | None = Field(default=None, ge=2)
    resume: bool | None = None

    setwise_preprocessors: list[StrategySpec] = Field(default_factory=list)
    setwise_selectors: list[StrategySpec] = Field(default_factory=list)
    setwise_postprocessors: list[StrategySpec] = Field(default_factory=list)
    setwise_trainers: list[StrategySpec] = Field(default_factory=list)
    setwise_testaware_trainers: list[StrategySpec] = Field(default_factory=list)
    preprocessors: list[StrategySpec] = Field(default_factory=list)
    pointwise_selectors: list[StrategySpec] = Field(default_factory=list)
    postprocessors: list[StrategySpec] = Field(default_factory=list)
    trainers: list[StrategySpec] = Field(default_factory=list)
    testaware_trainers: list[StrategySpec] = Field(default_factory=list)

    evaluator: StrategySpec = Field(default_factory=lambda: StrategySpec(name="defect_prediction"))
    result_stores: list[StrategySpec] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def is_file_name_safe(cls, value: str) -> str:
        """Ensure the name can be used as a file name."""
        if any(sep in value for sep in ("/", "\\")) or value in (".", ".."):
            raise ValueError("Experiment name must not contain path separators.")
        return value

    @model_validator(mode="after")
    def ensure_registered_strategies(self) -> Self:
        """Ensure every strategy name is registered for its role.

        Raises:
            ValueError: If a name is unknown or no trainer is configured.
        """
        if not any(getattr(self, f) for f in _TRAINER_FIELDS):
            raise ValueError("At least one trainer must be configured.")

        checks: list[tuple[StrategyKind, str]] = [
            (StrategyKind.TRAINING_POLICY, self.training_policy),
            (StrategyKind.EVALUATOR, self.evaluator.name),
            *((StrategyKind.LOADER, s.name) for s in self.loaders),
            *((StrategyKind.RESULT_STORE, s.name) for s in self.result_stores),
            *(
                (StrategyKind.VERSION_FILTER, s.name)
                for s in (*self.version_filters, *self.test_filters, *self.training_filters)
            ),
            *((kind, s.name) for field, kind in STAGE_KINDS.items() for s in getattr(self, field)),
        ]
        for kind, name in checks:
            try:
                get_strategy(kind, name)
            except ConfigurationError as exc:
                raise ValueError(str(exc)) from exc
        return self


def load_experiment_config(path: str | Path) -> ExperimentConfig:
    """Read and validate an experiment configuration file.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read experiment configuration {path}: {exc}") from exc
    try:
        return ExperimentConfig.model_validate_json(content)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid experiment configuration {path}:\n{exc}") from exc


def build_experiment_setup(
    config: ExperimentConfig,
    settings: ExperimentSettings | None = None,
) -> ExperimentSetup:
    """Instantiate the strategies of a configuration.

    Repeats, folds and resume fall back to the settings when the
    configuration leaves them unset, and the result directory falls back to
    `PathSettings.results_dir`.

    Raises:
        ConfigurationError: If a strategy rejects its parameters or trainer
            names collide.
    """
    settings = settings or ExperimentSettings()
    pipeline = StrategyPipeline(
        **{
            field: tuple(spec.build(kind) for spec in getattr(config, field))
            for field, kind in STAGE_KINDS.items()
        }
    )

    names = pipeline.trainer_names
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigurationError(
            f"Trainer names must be unique, duplicated: {', '.join(duplicates)}"
        )

    return ExperimentSetup(
        name=config.name,
        results_path=config.results_path or PathSettings().results_dir,
        loaders=[spec.build(StrategyKind.LOADER) for spec in config.loaders],
        pipeline=pipeline,
        evaluator=config.evaluator.build(StrategyKind.EVALUATOR),
        training_policy=get_strategy(StrategyKind.TRAINING_POLICY, config.training_policy),
        version_filters=[s.build(StrategyKind.VERSION_FILTER) for s in config.version_filters],
        test_filters=[s.build(StrategyKind.VERSION_FILTER) for s in config.test_filters],
        training_filters=[s.build(StrategyKind.VERSION_FILTER) for s in config.training_filters],
        result_stores=[s.build(StrategyKind.RESULT_STORE) for s in config.result_stores],
        label=config.label,
        slice_roles=config.slice_roles,
        repeats=config.repeats if config.repeats is not None else settings.repeats,
        folds=config.folds if config.folds is not None else settings.folds,
        resume=config.resume if config.resume is not None else settings.resume,
    )


__all__ = [
    "StrategySpec",
    "LoaderSpec",
    "ExperimentConfig",
    "load_experiment_config",
    "build_experiment_setup",
]
