"""Dependency injection wiring for the command line application.

The CLI resolves settings, the experiment executor and the results summarizer
through the module level `container`; tests override its providers.
"""

from dependency_injector import containers, providers

from sdp_experiments.config.settings import SdpSettings
from sdp_experiments.core.analysis.summary import ResultsSummarizer
from sdp_experiments.core.execution.executors import create_executor


class Container(containers.DeclarativeContainer):
    """Providers shared by the `experiment` and `analysis` commands."""

    # Loaded once from SDP_* variables and .env
    settings = providers.Singleton(SdpSettings)

    # --- Execution ---

    experiment_executor = providers.Factory(
        create_executor,
        n_jobs=settings.provided.resources.n_jobs,
        sequential=settings.provided.resources.sequential,
    )

    # --- Analysis ---

    results_summarizer = providers.Factory(ResultsSummarizer)


container = Container()
