"""Domain models for the production scheduling system.

This module contains all core data structures used throughout the planner,
including projects, tasks, skill categories, calendars, and the schedule
outputs produced by a run.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional


class ProjectStatus(Enum):
    """Lifecycle status of a project as reported by the host application."""

    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskStatus(Enum):
    """Status of a manufacturing task."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    HOLD = "HOLD"  # Waiting on a prerequisite
    COMPLETED = "COMPLETED"


# Statuses that make a project eligible for planning
SCHEDULABLE_PROJECT_STATUSES = frozenset(
    {ProjectStatus.PLANNED, ProjectStatus.IN_PROGRESS}
)

# Statuses that make a task a scheduling candidate
PENDING_TASK_STATUSES = frozenset(
    {TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.HOLD}
)


class CompletionStatus(Enum):
    """Delivery risk of a project's terminal manufacturing step."""

    PENDING = "pending"  # Terminal step never scheduled
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    OVERDUE = "overdue"


class UnscheduledReason(Enum):
    """Why a task was left out of the plan."""

    NO_WORKSTATION = "no_workstation"
    NO_SKILL_CATEGORY = "no_skill_category"
    NO_ELIGIBLE_EMPLOYEE = "no_eligible_employee"
    HORIZON_EXCEEDED = "horizon_exceeded"
    DEPENDENCY_UNRESOLVED = "dependency_unresolved"


@dataclass
class Project:
    """A customer project with a committed delivery (installation) date.

    Attributes:
        id: Unique identifier for the project.
        name: Display name.
        client: Client name.
        status: Lifecycle status.
        start_date: Planned production start.
        installation_date: Committed delivery date.
    """

    id: str
    name: str
    installation_date: date
    client: str = ""
    status: ProjectStatus = ProjectStatus.PLANNED
    start_date: Optional[date] = None

    @property
    def is_schedulable(self) -> bool:
        """Whether the project's status allows planning."""
        return self.status in SCHEDULABLE_PROJECT_STATUSES


@dataclass
class Task:
    """A manufacturing task belonging to a project.

    Attributes:
        id: Unique identifier for the task.
        title: Display title.
        duration: Work required, in minutes.
        status: Current task status.
        project_id: Owning project.
        skill_category_id: Standard task this task is an instance of.
        order_key: Lexically sortable key ("010", "020", ...).
        workstation_ids: Candidate workstations, in preference order.
    """

    id: str
    title: str
    duration: int
    project_id: str
    status: TaskStatus = TaskStatus.TODO
    skill_category_id: Optional[str] = None
    order_key: str = ""
    workstation_ids: list[str] = field(default_factory=list)

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_TASK_STATUSES

    @property
    def is_on_hold(self) -> bool:
        return self.status == TaskStatus.HOLD


@dataclass
class SkillCategory:
    """A reusable task type ("standard task").

    Used to match employees to tasks and to express prerequisite rules.

    Attributes:
        id: Unique identifier.
        name: Display name.
        order_key: Ordering key, used as tie-break between tasks.
        is_terminal: True for the last manufacturing step of a project.
    """

    id: str
    name: str
    order_key: str = ""
    is_terminal: bool = False


@dataclass
class EmployeeEligibility:
    """The skill categories an employee is certified for."""

    employee_id: str
    employee_name: str
    skill_category_ids: set[str] = field(default_factory=set)

    def can_perform(self, skill_category_id: Optional[str]) -> bool:
        """Check if the employee may work a task of the given category."""
        if skill_category_id is None:
            return False
        return skill_category_id in self.skill_category_ids


@dataclass(frozen=True)
class PrerequisiteLink:
    """Tasks of ``skill_category_id`` wait for ``prerequisite_skill_category_id``.

    Evaluated per project: the prerequisite only blocks when the same
    project contains a task of the prerequisite category.
    """

    skill_category_id: str
    prerequisite_skill_category_id: str


@dataclass(frozen=True)
class BreakInterval:
    """A break within a working day."""

    start_time: time
    end_time: time


@dataclass
class WorkingHours:
    """A team's working hours for one weekday.

    Attributes:
        team: Team the hours apply to (e.g. "production").
        day_of_week: 0 = Sunday ... 6 = Saturday.
        start_time: Start of the work window.
        end_time: End of the work window.
        breaks: Break intervals within the window.
        is_active: Inactive entries are ignored.
    """

    team: str
    day_of_week: int
    start_time: time
    end_time: time
    breaks: list[BreakInterval] = field(default_factory=list)
    is_active: bool = True


@dataclass(frozen=True)
class Holiday:
    """A non-working date for a team."""

    team: str
    date: date


@dataclass(frozen=True)
class TimeRange:
    """A half-open interval [start, end) of wall-clock time."""

    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        """Length of the range in whole minutes."""
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and other.start < self.end

    def __repr__(self) -> str:
        return (
            f"TimeRange({self.start.strftime('%Y-%m-%d %H:%M')}-"
            f"{self.end.strftime('%H:%M')})"
        )


@dataclass(frozen=True)
class EmployeeTimeBlock:
    """A reservation of an employee's time made during a run."""

    employee_id: str
    start: datetime
    end: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.end and end > self.start


@dataclass
class ScheduledSlot:
    """One contiguous reservation for one task, employee and workstation.

    Attributes:
        task_id: Scheduled task.
        workstation_id: Workstation the work happens at.
        employee_id: Employee doing the work.
        employee_name: Display name of the employee.
        scheduled_date: Calendar date of the slot.
        start: Slot start.
        end: Slot end.
        worker_index: Display-only round-robin index (0..9).
    """

    task_id: str
    workstation_id: str
    employee_id: str
    employee_name: str
    scheduled_date: date
    start: datetime
    end: datetime
    worker_index: int = 0

    @property
    def duration_minutes(self) -> int:
        """Slot length in minutes."""
        return int((self.end - self.start).total_seconds() // 60)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start, self.end)

    def to_dict(self) -> dict:
        """Serialize to the writer's record format."""
        return {
            "task_id": self.task_id,
            "workstation_id": self.workstation_id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "scheduled_date": self.scheduled_date.isoformat(),
            "start_time": self.start.isoformat(),
            "end_time": self.end.isoformat(),
            "worker_index": self.worker_index,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduledSlot":
        """Create a slot from the writer's record format."""
        return cls(
            task_id=data["task_id"],
            workstation_id=data["workstation_id"],
            employee_id=data["employee_id"],
            employee_name=data.get("employee_name", ""),
            scheduled_date=date.fromisoformat(data["scheduled_date"]),
            start=datetime.fromisoformat(data["start_time"]),
            end=datetime.fromisoformat(data["end_time"]),
            worker_index=int(data.get("worker_index", 0)),
        )


@dataclass
class ProjectCompletion:
    """Projected finish of a project's terminal step versus its delivery date.

    Attributes:
        project_id: Project the record describes.
        project_name: Display name of the project.
        client: Client name.
        installation_date: Committed delivery date.
        terminal_step_end: Projected finish of the terminal step, if scheduled.
        status: Delivery risk classification.
        days_remaining: Delivery date minus today, in days.
        terminal_step_name: Name of the terminal skill category.
    """

    project_id: str
    project_name: str
    installation_date: date
    status: CompletionStatus
    days_remaining: int
    client: str = ""
    terminal_step_end: Optional[datetime] = None
    terminal_step_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "project_name": self.project_name,
            "client": self.client,
            "installation_date": self.installation_date.isoformat(),
            "last_production_step_end": (
                self.terminal_step_end.isoformat() if self.terminal_step_end else None
            ),
            "last_production_step_name": self.terminal_step_name,
            "status": self.status.value,
            "days_remaining": self.days_remaining,
        }


@dataclass
class UnscheduledTask:
    """A task the run could not place."""

    task_id: str
    project_id: str
    reason: UnscheduledReason
    message: str = ""

    def __str__(self) -> str:
        return f"[{self.reason.value}] Task {self.task_id}: {self.message}"


@dataclass
class ScheduleResult:
    """Complete output of a scheduling run.

    Attributes:
        start: Earliest instant the run was allowed to plan from.
        slots: Produced slots, in commit order.
        completions: Per-project completion estimates, in urgency order.
        unscheduled: Tasks that were skipped.
        warnings: Human-readable warnings raised during the run.
        project_ids: Ranked project IDs, most urgent first.
    """

    start: datetime
    slots: list[ScheduledSlot] = field(default_factory=list)
    completions: list[ProjectCompletion] = field(default_factory=list)
    unscheduled: list[UnscheduledTask] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    project_ids: list[str] = field(default_factory=list)

    @property
    def scheduled_task_ids(self) -> set[str]:
        return {s.task_id for s in self.slots}

    def slots_for_task(self, task_id: str) -> list[ScheduledSlot]:
        """Get a task's slots ordered by start."""
        return sorted(
            (s for s in self.slots if s.task_id == task_id), key=lambda s: s.start
        )

    def slots_by_date(self) -> dict[date, list[ScheduledSlot]]:
        """Group slots by calendar date, each day ordered by start."""
        by_date: dict[date, list[ScheduledSlot]] = {}
        for slot in self.slots:
            by_date.setdefault(slot.scheduled_date, []).append(slot)
        for day_slots in by_date.values():
            day_slots.sort(key=lambda s: (s.start, s.workstation_id))
        return dict(sorted(by_date.items()))

    def task_start(self, task_id: str) -> Optional[datetime]:
        slots = self.slots_for_task(task_id)
        return slots[0].start if slots else None

    def task_end(self, task_id: str) -> Optional[datetime]:
        """Get the end of a task's last slot, if scheduled."""
        slots = self.slots_for_task(task_id)
        return slots[-1].end if slots else None

    def completion_for(self, project_id: str) -> Optional[ProjectCompletion]:
        for completion in self.completions:
            if completion.project_id == project_id:
                return completion
        return None

    @property
    def scheduled_minutes(self) -> int:
        return sum(s.duration_minutes for s in self.slots)


def combine(day: date, t: time) -> datetime:
    """Combine a date and a wall-clock time into a naive datetime."""
    return datetime.combine(day, t)


def ceil_to_minute(instant: datetime) -> datetime:
    """Round an instant up to the next whole minute."""
    truncated = instant.replace(second=0, microsecond=0)
    if truncated == instant:
        return instant
    return truncated + timedelta(minutes=1)


def host_weekday(day: date) -> int:
    """Weekday in the host convention (0 = Sunday ... 6 = Saturday)."""
    return (day.weekday() + 1) % 7


def parse_time(value: str) -> time:
    """Parse "HH:MM" or "HH:MM:SS" into a time."""
    parts = [int(p) for p in value.split(":")]
    while len(parts) < 3:
        parts.append(0)
    return time(hour=parts[0], minute=parts[1], second=parts[2])
