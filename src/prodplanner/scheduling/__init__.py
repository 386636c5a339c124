"""Scheduling engine for generating production task plans."""

from prodplanner.scheduling.completion import CompletionEstimator
from prodplanner.scheduling.context import RunContext
from prodplanner.scheduling.dependency_resolver import NO_CONSTRAINT, DependencyResolver
from prodplanner.scheduling.engine import SchedulingEngine
from prodplanner.scheduling.ranker import UrgencyRanker
from prodplanner.scheduling.scheduler import PlanningRun, Scheduler, SchedulerConfig
from prodplanner.scheduling.work_graph import WorkGraph, WorkGraphLoader

__all__ = [
    # Orchestration
    "Scheduler",
    "SchedulerConfig",
    "PlanningRun",
    # Components
    "UrgencyRanker",
    "WorkGraph",
    "WorkGraphLoader",
    "SchedulingEngine",
    "DependencyResolver",
    "NO_CONSTRAINT",
    "CompletionEstimator",
    # Run state
    "RunContext",
]
