"""Execution of several experiments, sequentially or concurrently."""

from sdp_experiments.core.execution.executors import (
    BaseExecutor,
    ParallelExecutor,
    SequentialExecutor,
    create_executor,
    run_experiment,
)

__all__ = [
    "BaseExecutor",
    "ParallelExecutor",
    "SequentialExecutor",
    "create_executor",
    "run_experiment",
]
