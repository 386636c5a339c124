"""Domain models and business rules for production planning."""

from prodplanner.domain.calendar import CalendarResolver, WorkWindow
from prodplanner.domain.models import (
    BreakInterval,
    CompletionStatus,
    EmployeeEligibility,
    EmployeeTimeBlock,
    Holiday,
    PrerequisiteLink,
    Project,
    ProjectCompletion,
    ProjectStatus,
    ScheduledSlot,
    ScheduleResult,
    SkillCategory,
    Task,
    TaskStatus,
    TimeRange,
    UnscheduledReason,
    UnscheduledTask,
    WorkingHours,
)
from prodplanner.domain.policies import (
    CompletionPolicy,
    DefaultCompletionPolicy,
    DefaultPrerequisitePolicy,
    FirstCandidateWorkstationPolicy,
    PrerequisitePolicy,
    WorkstationPolicy,
)

__all__ = [
    # Models
    "BreakInterval",
    "CompletionStatus",
    "EmployeeEligibility",
    "EmployeeTimeBlock",
    "Holiday",
    "PrerequisiteLink",
    "Project",
    "ProjectCompletion",
    "ProjectStatus",
    "ScheduledSlot",
    "ScheduleResult",
    "SkillCategory",
    "Task",
    "TaskStatus",
    "TimeRange",
    "UnscheduledReason",
    "UnscheduledTask",
    "WorkingHours",
    # Calendar
    "CalendarResolver",
    "WorkWindow",
    # Policies
    "CompletionPolicy",
    "DefaultCompletionPolicy",
    "DefaultPrerequisitePolicy",
    "FirstCandidateWorkstationPolicy",
    "PrerequisitePolicy",
    "WorkstationPolicy",
]
