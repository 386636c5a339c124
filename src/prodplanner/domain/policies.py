"""Policy definitions for planning rules.

This module contains configurable policies that define business rules for
workstation selection, prerequisite handling, and delivery-risk
classification. Policies are kept separate from the scheduling engine to
allow independent testing and easy modification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from prodplanner.domain.models import CompletionStatus, Task


class WorkstationPolicy(ABC):
    """Abstract base class for workstation selection."""

    @abstractmethod
    def select_workstation(self, task: Task) -> Optional[str]:
        """Choose the workstation a task is planned on.

        Args:
            task: Task being scheduled.

        Returns:
            Workstation ID, or None if the task cannot be placed anywhere.
        """
        pass


class PrerequisitePolicy(ABC):
    """Abstract base class for prerequisite evaluation rules."""

    @abstractmethod
    def missing_instance_satisfies(self) -> bool:
        """Whether a prerequisite absent from the project counts as met."""
        pass


class CompletionPolicy(ABC):
    """Abstract base class for delivery-risk classification."""

    @abstractmethod
    def classify(self, days_before_delivery: float) -> CompletionStatus:
        """Classify the slack between terminal finish and delivery.

        Args:
            days_before_delivery: Delivery minus terminal finish, in days.
                Negative when the finish is after delivery.

        Returns:
            Completion status for the project.
        """
        pass


@dataclass
class FirstCandidateWorkstationPolicy(WorkstationPolicy):
    """Always plan on the first candidate workstation.

    Workstations carry no capacity model; only employee time is
    constrained.
    """

    def select_workstation(self, task: Task) -> Optional[str]:
        if not task.workstation_ids:
            return None
        return task.workstation_ids[0]


@dataclass
class DefaultPrerequisitePolicy(PrerequisitePolicy):
    """Default prerequisite policy.

    A prerequisite category with no task instance in the project does not
    block the dependent task.
    """

    missing_instance_satisfied: bool = True

    def missing_instance_satisfies(self) -> bool:
        return self.missing_instance_satisfied


@dataclass
class DefaultCompletionPolicy(CompletionPolicy):
    """Default completion policy.

    Slack thresholds:
    - finish after delivery: overdue
    - less than 3 days of slack: at risk
    - 3 days or more: on track
    """

    at_risk_days: float = 3.0

    def classify(self, days_before_delivery: float) -> CompletionStatus:
        if days_before_delivery < 0:
            return CompletionStatus.OVERDUE
        elif days_before_delivery < self.at_risk_days:
            return CompletionStatus.AT_RISK
        else:
            return CompletionStatus.ON_TRACK
