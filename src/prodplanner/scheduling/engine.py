"""Slot search and employee arbitration.

The engine places one task at a time. It walks forward from a not-before
instant in fixed steps, splits the task's duration around breaks and day
ends, and commits the first start for which an eligible employee is free
over the whole resulting span.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from prodplanner.domain.calendar import CalendarResolver
from prodplanner.domain.models import (
    EmployeeEligibility,
    ScheduledSlot,
    Task,
    TimeRange,
    UnscheduledReason,
    ceil_to_minute,
)
from prodplanner.domain.policies import FirstCandidateWorkstationPolicy, WorkstationPolicy
from prodplanner.scheduling.context import RunContext
from prodplanner.scheduling.work_graph import WorkGraph

logger = logging.getLogger(__name__)


class SchedulingEngine:
    """Places tasks into a team's calendar.

    The engine itself is stateless between calls; reservations live in the
    ``RunContext`` passed to each call.

    Example:
        >>> engine = SchedulingEngine(calendar, team="production")
        >>> slots = engine.schedule_task(task, graph, start, context)
    """

    def __init__(
        self,
        calendar: CalendarResolver,
        team: str = "production",
        step_minutes: int = 15,
        horizon_days: int = 365,
        workstation_policy: Optional[WorkstationPolicy] = None,
    ):
        """Initialize the engine.

        Args:
            calendar: Calendar used for working days, windows and breaks.
            team: Team whose calendar applies.
            step_minutes: Increment between candidate start instants.
            horizon_days: Calendar days after the not-before instant to search.
            workstation_policy: Chooses the workstation of a task.
        """
        if step_minutes <= 0:
            raise ValueError("step_minutes must be positive")

        self.calendar = calendar
        self.team = team
        self.step = timedelta(minutes=step_minutes)
        self.horizon_days = horizon_days
        self.workstation_policy = workstation_policy or FirstCandidateWorkstationPolicy()

    def _within_horizon(self, origin: date, day: date) -> bool:
        return (day - origin).days < self.horizon_days

    def partition(self, start: datetime, duration: int) -> Optional[list[TimeRange]]:
        """Split a duration into contiguous work ranges from ``start``.

        Each range runs up to the next break or the end of the day. Breaks
        are skipped, and work continues at the start of the next working
        day once a day is used up.

        Args:
            start: Instant the work begins (moved forward to the day's
                window start or the next working day if needed).
            duration: Minutes of work to place.

        Returns:
            Ranges whose lengths sum to ``duration``, or None if the work
            cannot be placed within the horizon.
        """
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")

        origin = start.date()
        day = origin
        cursor = start
        remaining = timedelta(minutes=duration)
        ranges: list[TimeRange] = []

        while remaining > timedelta(0):
            if not self._within_horizon(origin, day):
                return None

            window = None
            if self.calendar.is_working_day(day, self.team):
                window = self.calendar.work_window(day, self.team)
            if window is None:
                day += timedelta(days=1)
                continue

            if cursor < window.start:
                cursor = window.start

            while remaining > timedelta(0) and cursor < window.end:
                brk = window.break_at(cursor)
                if brk is not None:
                    cursor = brk.end
                    continue

                available_end = window.end
                next_break = window.next_break_after(cursor)
                if next_break is not None and next_break.start < window.end:
                    available_end = next_break.start

                used = min(remaining, available_end - cursor)
                ranges.append(TimeRange(cursor, cursor + used))
                remaining -= used
                cursor += used

            day += timedelta(days=1)

        return ranges

    def find_earliest_slots(
        self,
        duration: int,
        eligible: list[EmployeeEligibility],
        min_start: datetime,
        context: RunContext,
    ) -> Optional[tuple[list[TimeRange], EmployeeEligibility]]:
        """Find the earliest placement of a task with a free employee.

        Args:
            duration: Minutes of work to place.
            eligible: Employees allowed to do the work, in preference order.
            min_start: Instant the work may not start before.
            context: Current reservations.

        Returns:
            ``(ranges, employee)`` for the first feasible start, or None if
            none exists within the horizon.
        """
        if not eligible:
            return None

        # Slots are whole minutes
        min_start = ceil_to_minute(min_start)
        origin = min_start.date()
        for offset in range(self.horizon_days):
            day = origin + timedelta(days=offset)
            if not self.calendar.is_working_day(day, self.team):
                continue
            window = self.calendar.work_window(day, self.team)
            if window is None:
                continue

            candidate = max(min_start, window.start) if day == origin else window.start

            while candidate < window.end:
                brk = window.break_at(candidate)
                if brk is not None:
                    candidate = brk.end
                    continue

                ranges = self.partition(candidate, duration)
                if not ranges:
                    # The partition horizon counts from the candidate's date,
                    # so a start on a later day may still fit
                    break

                employee = context.find_free_employee(eligible, ranges[0].start, ranges[-1].end)
                if employee is not None:
                    return ranges, employee

                candidate += self.step

        return None

    def schedule_task(
        self,
        task: Task,
        graph: WorkGraph,
        min_start: datetime,
        context: RunContext,
    ) -> list[ScheduledSlot]:
        """Schedule a task and commit its reservation.

        Args:
            task: Task to place.
            graph: Work graph providing employee eligibility.
            min_start: Instant the task may not start before.
            context: Run state to commit into.

        Returns:
            The task's slots in time order, or an empty list if the task
            was skipped. Skips are recorded in ``context``.
        """
        workstation_id = self.workstation_policy.select_workstation(task)
        if workstation_id is None:
            logger.warning("Task %s has no workstation assigned, skipping", task.id)
            context.skip(task.id, task.project_id, UnscheduledReason.NO_WORKSTATION,
                         "no workstation assigned")
            return []

        if task.skill_category_id is None:
            logger.warning("Task %s has no skill category, skipping", task.id)
            context.skip(task.id, task.project_id, UnscheduledReason.NO_SKILL_CATEGORY,
                         "no skill category")
            return []

        eligible = graph.eligible_employees(task.skill_category_id)
        if not eligible:
            logger.warning(
                "Task %s has no employee eligible for skill %s, skipping",
                task.id, task.skill_category_id,
            )
            context.skip(task.id, task.project_id, UnscheduledReason.NO_ELIGIBLE_EMPLOYEE,
                         f"no employee eligible for skill {task.skill_category_id}")
            return []

        found = self.find_earliest_slots(task.duration, eligible, min_start, context)
        if found is None:
            logger.warning("Could not find slot for task %s", task.id)
            context.skip(task.id, task.project_id, UnscheduledReason.HORIZON_EXCEEDED,
                         f"no feasible start within {self.horizon_days} days")
            return []

        ranges, employee = found
        span_start, span_end = ranges[0].start, ranges[-1].end

        context.reserve(employee.employee_id, span_start, span_end)
        context.record_finish(task.id, span_end)
        worker_index = context.next_worker_index(workstation_id)

        slots = [
            ScheduledSlot(
                task_id=task.id,
                workstation_id=workstation_id,
                employee_id=employee.employee_id,
                employee_name=employee.employee_name,
                scheduled_date=rng.start.date(),
                start=rng.start,
                end=rng.end,
                worker_index=worker_index,
            )
            for rng in ranges
        ]
        context.slots.extend(slots)

        logger.debug(
            "Scheduled task %s for %s on %s: %s",
            task.id, employee.employee_name, workstation_id, ranges,
        )
        return slots
