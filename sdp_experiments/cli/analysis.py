"""CLI for analyzing experiment results."""

from pathlib import Path
from typing import Annotated

from loguru import logger
import typer

from sdp_experiments.containers import container
from sdp_experiments.core.errors import ExperimentError

app = typer.Typer()


@app.command("summarize")
def summarize(
    results: Annotated[
        Path,
        typer.Argument(help="Raw result file written by an experiment."),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Where to write the summary. Defaults to the summaries directory.",
        ),
    ] = None,
):
    """Aggregate raw results into per-classifier means and standard deviations."""
    if output is None:
        output = container.settings().paths.summaries_dir / results.name

    summarizer = container.results_summarizer()
    try:
        summary = summarizer.run(results, output)
    except ExperimentError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    logger.info(f"{summary.height} groups summarized")
