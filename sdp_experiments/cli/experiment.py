"""CLI for running experiments."""

from pathlib import Path
from typing import Annotated

from loguru import logger
import typer

from sdp_experiments.containers import container
from sdp_experiments.core.errors import ConfigurationError
from sdp_experiments.core.execution.executors import create_executor
from sdp_experiments.core.experiment.configuration import ExperimentConfig, load_experiment_config
from sdp_experiments.core.experiment.engine import ExperimentOutcome

app = typer.Typer()


def _load_configs(paths: list[Path], resume: bool | None) -> list[ExperimentConfig]:
    configs = [load_experiment_config(path) for path in paths]
    if resume is not None:
        configs = [config.model_copy(update={"resume": resume}) for config in configs]
    return configs


def _report(outcomes: list[ExperimentOutcome]) -> bool:
    """Log one line per experiment and tell whether all of them succeeded."""
    all_succeeded = True
    for outcome in outcomes:
        if outcome.succeeded:
            logger.success(f"{outcome.name}: {outcome.state}, {outcome.rows_written} rows")
            continue
        all_succeeded = False
        logger.error(
            f"{outcome.name}: {outcome.state}, {outcome.rows_written} rows, "
            f"{len(outcome.errors)} errors"
        )
        for error in outcome.errors:
            logger.debug(f"{outcome.name}: {error}")
    return all_succeeded


@app.command("run")
def run(
    configs: Annotated[
        list[Path],
        typer.Argument(
            exists=True,
            dir_okay=False,
            help="Experiment configuration files (JSON).",
        ),
    ],
    jobs: Annotated[
        int | None,
        typer.Option(
            "--jobs",
            "-j",
            min=1,
            help="Number of experiments run concurrently. Defaults to the SDP_N_JOBS setting.",
        ),
    ] = None,
    sequential: Annotated[
        bool | None,
        typer.Option(
            "--sequential/--no-sequential",
            "-s",
            help="Run experiments one after the other instead of concurrently.",
        ),
    ] = None,
    resume: Annotated[
        bool | None,
        typer.Option(
            "--resume/--no-resume",
            help="Skip versions whose results are already stored.",
        ),
    ] = None,
):
    """Run one experiment per configuration file."""
    settings = container.settings()

    try:
        experiment_configs = _load_configs(configs, resume)
    except ConfigurationError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    if jobs is None and sequential is None:
        executor = container.experiment_executor()
    else:
        executor = create_executor(
            n_jobs=jobs if jobs is not None else settings.resources.n_jobs,
            sequential=sequential if sequential is not None else settings.resources.sequential,
        )

    logger.info(f"Running {len(experiment_configs)} experiments...")
    try:
        outcomes = executor.execute(experiment_configs, settings.experiment)
    except ConfigurationError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    if not _report(outcomes):
        raise typer.Exit(1)
