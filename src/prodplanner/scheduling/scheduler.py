"""Main scheduler interface.

This module provides the high-level Scheduler class that orchestrates
project ranking, work graph loading, task placement, dependency
resolution and completion estimation for one run.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from prodplanner.adapters.sources import PlanningDataSource, fetch_or_fail
from prodplanner.adapters.writer import ScheduleWriter
from prodplanner.domain.calendar import CalendarResolver
from prodplanner.domain.models import CompletionStatus, ScheduleResult
from prodplanner.domain.policies import (
    CompletionPolicy,
    DefaultCompletionPolicy,
    DefaultPrerequisitePolicy,
    FirstCandidateWorkstationPolicy,
    PrerequisitePolicy,
    WorkstationPolicy,
)
from prodplanner.scheduling.completion import CompletionEstimator
from prodplanner.scheduling.context import RunContext
from prodplanner.scheduling.dependency_resolver import DependencyResolver
from prodplanner.scheduling.engine import SchedulingEngine
from prodplanner.scheduling.ranker import UrgencyRanker
from prodplanner.scheduling.work_graph import WorkGraph, WorkGraphLoader

logger = logging.getLogger(__name__)


@dataclass
class SchedulerConfig:
    """Configuration for a scheduling run.

    Attributes:
        team: Team whose calendar applies.
        project_count: Number of most urgent projects to plan.
        step_minutes: Increment between candidate start instants.
        horizon_days: Calendar days searched for a task's start.
        max_dependency_sweeps: Cap on HOLD resolution sweeps per project.
        worker_index_cycle: Modulus of the per-workstation worker index.
        exclude_weekends: Never plan on Saturday or Sunday.
        default_task_duration: Minutes assumed for tasks without a duration.
        default_order_key: Order key for tasks and categories without one.
    """

    team: str = "production"
    project_count: int = 10
    step_minutes: int = 15
    horizon_days: int = 365
    max_dependency_sweeps: int = 10
    worker_index_cycle: int = 10
    exclude_weekends: bool = True
    default_task_duration: int = 60
    default_order_key: str = "999"


@dataclass
class PlanningRun:
    """Everything one run produced and planned against.

    Attributes:
        result: The schedule.
        graph: Work graph the run planned.
        calendar: Calendar the run planned against.
        context: Final reservation state.
    """

    result: ScheduleResult
    graph: WorkGraph = field(default_factory=WorkGraph)
    calendar: Optional[CalendarResolver] = None
    context: RunContext = field(default_factory=RunContext)


class Scheduler:
    """High-level scheduler for production-floor task plans.

    Projects are planned strictly in urgency order; within a project,
    TODO and IN_PROGRESS tasks claim capacity before HOLD tasks. The
    scheduler keeps no state between runs.

    Example:
        >>> scheduler = Scheduler(source)
        >>> result = scheduler.generate_schedule(datetime(2024, 1, 15, 8, 0))
        >>> scheduler.commit(result, writer)
    """

    def __init__(
        self,
        source: PlanningDataSource,
        config: Optional[SchedulerConfig] = None,
        workstation_policy: Optional[WorkstationPolicy] = None,
        prerequisite_policy: Optional[PrerequisitePolicy] = None,
        completion_policy: Optional[CompletionPolicy] = None,
    ):
        """Initialize scheduler with a data source and policies.

        Args:
            source: Provider of projects, tasks, calendars and eligibility.
            config: Run configuration.
            workstation_policy: Chooses a task's workstation.
            prerequisite_policy: Decides how missing prerequisites count.
            completion_policy: Classifies delivery risk.
        """
        self.source = source
        self.config = config or SchedulerConfig()
        self.workstation_policy = workstation_policy or FirstCandidateWorkstationPolicy()
        self.prerequisite_policy = prerequisite_policy or DefaultPrerequisitePolicy()
        self.completion_policy = completion_policy or DefaultCompletionPolicy()

        self.ranker = UrgencyRanker()
        self.loader = WorkGraphLoader(
            source,
            default_duration=self.config.default_task_duration,
            default_order_key=self.config.default_order_key,
        )
        self.estimator = CompletionEstimator(self.completion_policy)

    def load_calendar(self) -> CalendarResolver:
        """Fetch working hours and holidays and build the calendar.

        Raises:
            DataSourceError: If either cannot be fetched.
        """
        working_hours = fetch_or_fail("working hours", self.source.fetch_working_hours)
        holidays = fetch_or_fail("holidays", self.source.fetch_holidays)
        calendar = CalendarResolver(
            working_hours, holidays, exclude_weekends=self.config.exclude_weekends
        )
        if self.config.team not in calendar.teams:
            logger.warning("No active working hours defined for team %s", self.config.team)
        return calendar

    def plan(self, start: datetime, today: Optional[date] = None) -> PlanningRun:
        """Run the scheduler and keep the run's inputs alongside the result.

        Args:
            start: Earliest instant any task may start.
            today: Reference date for ranking and days remaining. Defaults
                to the date of ``start``.

        Returns:
            The run's result, work graph, calendar and final state.

        Raises:
            DataSourceError: If projects, tasks, calendars or eligibility
                cannot be fetched.
        """
        today = today or start.date()
        context = RunContext(worker_index_cycle=self.config.worker_index_cycle)

        calendar = self.load_calendar()
        all_projects = fetch_or_fail("projects", self.source.fetch_projects)
        projects = self.ranker.urgent_projects(all_projects, self.config.project_count, today)

        if not projects:
            logger.info("No projects to schedule")
            return PlanningRun(
                result=ScheduleResult(start=start),
                calendar=calendar,
                context=context,
            )

        logger.info(
            "Scheduling %d projects: %s", len(projects), ", ".join(p.name for p in projects)
        )

        graph = self.loader.load(projects)
        engine = SchedulingEngine(
            calendar,
            team=self.config.team,
            step_minutes=self.config.step_minutes,
            horizon_days=self.config.horizon_days,
            workstation_policy=self.workstation_policy,
        )
        resolver = DependencyResolver(
            engine,
            policy=self.prerequisite_policy,
            max_sweeps=self.config.max_dependency_sweeps,
        )

        for project in projects:
            ready = graph.ready_tasks(project.id)
            held = graph.hold_tasks(project.id)
            if not ready and not held:
                continue

            logger.info(
                "Project %s: %d TODO/IN_PROGRESS, %d HOLD tasks",
                project.name, len(ready), len(held),
            )

            for task in ready:
                engine.schedule_task(task, graph, start, context)

            if held:
                resolver.resolve(held, graph, start, context)

        completions = self.estimator.estimate(projects, graph, context, today)

        result = ScheduleResult(
            start=start,
            slots=list(context.slots),
            completions=completions,
            unscheduled=list(context.unscheduled),
            warnings=list(context.warnings),
            project_ids=[p.id for p in projects],
        )
        logger.info(
            "Generated %d schedule entries, %d tasks unscheduled",
            len(result.slots), len(result.unscheduled),
        )
        return PlanningRun(result=result, graph=graph, calendar=calendar, context=context)

    def generate_schedule(self, start: datetime, today: Optional[date] = None) -> ScheduleResult:
        """Generate a plan for the most urgent projects.

        Args:
            start: Earliest instant any task may start.
            today: Reference date for ranking and days remaining.

        Returns:
            Complete ScheduleResult with slots, completions and skips.
        """
        return self.plan(start, today).result

    def generate_schedule_with_stats(
        self,
        start: datetime,
        today: Optional[date] = None,
    ) -> tuple[ScheduleResult, dict]:
        """Generate a plan and return statistics.

        Returns:
            Tuple of (result, stats_dict).
        """
        run = self.plan(start, today)
        return run.result, self.calculate_stats(run)

    def calculate_stats(self, run: PlanningRun) -> dict:
        """Calculate plan statistics."""
        result = run.result
        total_tasks = len(run.graph.all_tasks)
        scheduled_tasks = len(result.scheduled_task_ids)

        status_counts = {status.value: 0 for status in CompletionStatus}
        for completion in result.completions:
            status_counts[completion.status.value] += 1

        return {
            "total_projects": len(result.project_ids),
            "total_tasks": total_tasks,
            "scheduled_tasks": scheduled_tasks,
            "unscheduled_tasks": len(result.unscheduled),
            "total_slots": len(result.slots),
            "scheduled_minutes": result.scheduled_minutes,
            "employees_used": len({s.employee_id for s in result.slots}),
            "dates_touched": len({s.scheduled_date for s in result.slots}),
            "completion_status": status_counts,
        }

    def commit(self, result: ScheduleResult, writer: ScheduleWriter) -> list[date]:
        """Persist a plan through a writer.

        Slots replace everything stored on the dates they touch, and the
        completion records replace the stored ones.

        Returns:
            The affected dates, ascending.
        """
        affected = writer.commit(result.slots)
        writer.save_completions(result.completions)
        return affected
