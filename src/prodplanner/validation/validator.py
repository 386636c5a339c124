"""Validation module for verifying plan correctness.

This module provides a single source of truth for all plan constraints.
Every generated plan should pass validation before being written.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from prodplanner.domain.calendar import CalendarResolver
from prodplanner.domain.models import ScheduledSlot, ScheduleResult, Task
from prodplanner.scheduling.work_graph import WorkGraph


class ValidationErrorType(Enum):
    """Types of validation errors."""

    EMPLOYEE_DOUBLE_BOOKED = "employee_double_booked"
    DURATION_MISMATCH = "duration_mismatch"
    SLOT_OVERLAPS_BREAK = "slot_overlaps_break"
    SLOT_OUTSIDE_WORK_WINDOW = "slot_outside_work_window"
    SLOT_ON_NON_WORKING_DAY = "slot_on_non_working_day"
    EMPLOYEE_NOT_ELIGIBLE = "employee_not_eligible"
    DEPENDENCY_VIOLATED = "dependency_violated"
    UNKNOWN_TASK = "unknown_task"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    task_id: Optional[str] = None
    employee_id: Optional[str] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.task_id:
            parts.append(f"Task {self.task_id}:")
        parts.append(self.message)
        if self.employee_id:
            parts.append(f"(employee {self.employee_id})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a plan."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def errors_of(self, error_type: ValidationErrorType) -> list[ValidationError]:
        return [e for e in self.errors if e.error_type == error_type]


class PlanValidator:
    """Validates plans against all constraints.

    Example:
        >>> validator = PlanValidator()
        >>> result = validator.validate(plan, graph, calendar, "production")
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def validate(
        self,
        plan: ScheduleResult,
        graph: WorkGraph,
        calendar: CalendarResolver,
        team: str = "production",
    ) -> ValidationResult:
        """Validate a complete plan.

        Args:
            plan: The plan to validate.
            graph: Work graph the plan was produced from.
            calendar: Calendar the plan was produced against.
            team: Team whose calendar applies.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)
        tasks = graph.tasks_by_id

        for slot in plan.slots:
            task = tasks.get(slot.task_id)
            if task is None:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_TASK,
                        message="Slot references a task outside the work graph",
                        task_id=slot.task_id,
                    )
                )
                continue

            self._validate_slot_calendar(slot, calendar, team, result)
            self._validate_eligibility(slot, task, graph, result)

        self._validate_double_booking(plan, result)
        self._validate_durations(plan, tasks, result)
        self._validate_dependencies(plan, graph, result)

        for entry in plan.unscheduled:
            result.add_warning(str(entry))

        return result

    def _validate_slot_calendar(
        self,
        slot: ScheduledSlot,
        calendar: CalendarResolver,
        team: str,
        result: ValidationResult,
    ) -> None:
        """Validate a slot against working days, work window and breaks."""
        day = slot.scheduled_date

        if not calendar.is_working_day(day, team):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.SLOT_ON_NON_WORKING_DAY,
                    message=f"Slot on non-working day {day.isoformat()}",
                    task_id=slot.task_id,
                    employee_id=slot.employee_id,
                )
            )
            return

        window = calendar.work_window(day, team)
        outside = (
            window is None
            or slot.start.date() != day
            or slot.end.date() != day
            or slot.start < window.start
            or slot.end > window.end
            or slot.end <= slot.start
        )
        if outside:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.SLOT_OUTSIDE_WORK_WINDOW,
                    message=(
                        f"Slot {slot.start:%Y-%m-%d %H:%M}-{slot.end:%H:%M} "
                        "outside the work window"
                    ),
                    task_id=slot.task_id,
                    employee_id=slot.employee_id,
                )
            )
            return

        if window.overlaps_break(slot.time_range):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.SLOT_OVERLAPS_BREAK,
                    message=f"Slot {slot.start:%H:%M}-{slot.end:%H:%M} overlaps a break",
                    task_id=slot.task_id,
                    employee_id=slot.employee_id,
                )
            )

    def _validate_eligibility(
        self,
        slot: ScheduledSlot,
        task: Task,
        graph: WorkGraph,
        result: ValidationResult,
    ) -> None:
        employee = next(
            (e for e in graph.employees if e.employee_id == slot.employee_id), None
        )
        if employee is None or not employee.can_perform(task.skill_category_id):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.EMPLOYEE_NOT_ELIGIBLE,
                    message=f"Employee not certified for skill {task.skill_category_id}",
                    task_id=task.id,
                    employee_id=slot.employee_id,
                )
            )

    def _validate_double_booking(self, plan: ScheduleResult, result: ValidationResult) -> None:
        """Validate that no employee works two slots at the same time."""
        by_employee: dict[str, list[ScheduledSlot]] = {}
        for slot in plan.slots:
            by_employee.setdefault(slot.employee_id, []).append(slot)

        for employee_id, slots in by_employee.items():
            slots = sorted(slots, key=lambda s: s.start)
            for previous, current in zip(slots, slots[1:]):
                if current.start < previous.end:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.EMPLOYEE_DOUBLE_BOOKED,
                            message=(
                                f"Slot {current.start:%Y-%m-%d %H:%M} overlaps "
                                f"task {previous.task_id} ending {previous.end:%H:%M}"
                            ),
                            task_id=current.task_id,
                            employee_id=employee_id,
                        )
                    )

    def _validate_durations(
        self,
        plan: ScheduleResult,
        tasks: dict[str, Task],
        result: ValidationResult,
    ) -> None:
        """Validate that each task's slots add up to its duration."""
        for task_id in sorted(plan.scheduled_task_ids):
            task = tasks.get(task_id)
            if task is None:
                continue
            planned = sum(s.duration_minutes for s in plan.slots_for_task(task_id))
            if planned != task.duration:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DURATION_MISMATCH,
                        message=f"Planned {planned} min, task needs {task.duration} min",
                        task_id=task_id,
                        details={"planned": planned, "required": task.duration},
                    )
                )

    def _validate_dependencies(
        self,
        plan: ScheduleResult,
        graph: WorkGraph,
        result: ValidationResult,
    ) -> None:
        """Validate that HOLD tasks start after their prerequisites finish."""
        for task in graph.all_tasks:
            if not task.is_on_hold:
                continue
            start = plan.task_start(task.id)
            if start is None:
                continue

            for _, instance in graph.prerequisite_instances(task):
                if instance is None:
                    continue
                finish = plan.task_end(instance.id)
                if finish is None or start < finish:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.DEPENDENCY_VIOLATED,
                            message=(
                                f"Starts {start:%Y-%m-%d %H:%M} before prerequisite "
                                f"task {instance.id} finishes"
                            ),
                            task_id=task.id,
                        )
                    )
