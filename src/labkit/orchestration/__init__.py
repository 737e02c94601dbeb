"""Orchestration package: concurrent experiment preparation."""

from labkit.orchestration.barrier import FanInBarrier, TaskTracker, barrier_future, track
from labkit.orchestration.engine import Orchestrator, prepare
from labkit.orchestration.preparer import ExperimentPreparer
from labkit.orchestration.results import ExperimentResult, RunResult

__all__ = [
    "ExperimentPreparer",
    "ExperimentResult",
    "FanInBarrier",
    "Orchestrator",
    "RunResult",
    "TaskTracker",
    "barrier_future",
    "prepare",
    "track",
]
