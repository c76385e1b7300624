"""Exceptions raised by the experiment engine and its collaborators."""


class ExperimentError(Exception):
    """Base exception for experiment errors."""


class ConfigurationError(ExperimentError):
    """Raised when an experiment is wired with missing or invalid collaborators.

    Fatal for the experiment it belongs to, never for sibling experiments.
    """


class DataError(ExperimentError):
    """Raised when the data of a version cannot be used by the experiment."""

    def __init__(self, message: str, version: str | None = None) -> None:
        self.version = version
        if version is not None:
            message = f"{version}: {message}"
        super().__init__(message)


class EmptyTrainingDataError(DataError):
    """Raised when no training data is left for a test iteration."""

    def __init__(
        self,
        experiment: str | None = None,
        version: str | None = None,
        repeat: int | None = None,
        fold: int | None = None,
    ) -> None:
        self.experiment = experiment
        self.repeat = repeat
        self.fold = fold
        super().__init__(
            f"no training data (experiment={experiment}, repeat={repeat}, fold={fold})",
            version,
        )


class StageError(ExperimentError):
    """Raised when a processing or selection strategy fails.

    Aborts the pipeline instance of the iteration in which it occurred.
    """

    def __init__(self, stage: str, strategy: str, reason: str) -> None:
        self.stage = stage
        self.strategy = strategy
        self.reason = reason
        super().__init__(f"{stage} '{strategy}' failed: {reason}")


class TrainerFitError(ExperimentError):
    """Raised when a training strategy fails to fit its model."""

    def __init__(
        self,
        trainer: str,
        experiment: str,
        version: str,
        repeat: int,
        fold: int,
        reason: str,
    ) -> None:
        self.trainer = trainer
        self.experiment = experiment
        self.version = version
        self.repeat = repeat
        self.fold = fold
        self.reason = reason
        super().__init__(
            f"trainer '{trainer}' failed for {version} "
            f"(experiment={experiment}, repeat={repeat}, fold={fold}): {reason}"
        )


class EvaluationError(ExperimentError):
    """Raised when a trained model cannot be scored on the test rows.

    Only the row of that model for the iteration is lost.
    """

    def __init__(
        self,
        model: str,
        experiment: str,
        version: str,
        repeat: int,
        fold: int,
        reason: str,
    ) -> None:
        self.model = model
        self.experiment = experiment
        self.version = version
        self.repeat = repeat
        self.fold = fold
        self.reason = reason
        super().__init__(
            f"model '{model}' could not be evaluated on {version} "
            f"(experiment={experiment}, repeat={repeat}, fold={fold}): {reason}"
        )


class ResultStoreError(ExperimentError):
    """Raised when results cannot be written. Fatal for the run."""

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"Result store error for '{target}': {reason}")


__all__ = [
    "ExperimentError",
    "ConfigurationError",
    "DataError",
    "EmptyTrainingDataError",
    "StageError",
    "TrainerFitError",
    "EvaluationError",
    "ResultStoreError",
]
