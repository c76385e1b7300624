"""CLI entry point for experiments."""

import typer

from sdp_experiments.config.logging import configure_logging
from sdp_experiments.containers import container

from .analysis import app as analysis
from .experiment import app as experiment

app = typer.Typer()
app.add_typer(experiment, name="experiment", help="Experiment execution commands.")
app.add_typer(analysis, name="analysis", help="Results analysis commands.")


@app.callback()
def main() -> None:
    """Repeated cross-validation experiments for software defect prediction."""
    configure_logging(container.settings().logging)
