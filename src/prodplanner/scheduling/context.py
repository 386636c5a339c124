"""Run-scoped reservation state.

Everything a scheduling run mutates lives in one ``RunContext``: employee
time blocks, committed task finish instants, per-workstation worker
indices and the run's bookkeeping of skipped tasks. A new context is
created for every run, so repeated runs never see each other's state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from prodplanner.domain.models import (
    EmployeeEligibility,
    EmployeeTimeBlock,
    ScheduledSlot,
    UnscheduledReason,
    UnscheduledTask,
)


@dataclass
class RunContext:
    """Mutable state of a single scheduling run.

    Attributes:
        worker_index_cycle: Modulus of the per-workstation worker index.
        time_blocks: Reservations per employee ID.
        finish_instants: Task ID to the end of its last slot.
        worker_indices: Next worker index per workstation ID.
        slots: Slots committed so far, in commit order.
        unscheduled: Tasks skipped so far.
        warnings: Warnings raised so far.
    """

    worker_index_cycle: int = 10
    time_blocks: dict[str, list[EmployeeTimeBlock]] = field(default_factory=dict)
    finish_instants: dict[str, datetime] = field(default_factory=dict)
    worker_indices: dict[str, int] = field(default_factory=dict)
    slots: list[ScheduledSlot] = field(default_factory=list)
    unscheduled: list[UnscheduledTask] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def is_employee_free(self, employee_id: str, start: datetime, end: datetime) -> bool:
        """Check that no reservation of the employee overlaps [start, end)."""
        return not any(
            block.overlaps(start, end) for block in self.time_blocks.get(employee_id, [])
        )

    def find_free_employee(
        self,
        eligible: Iterable[EmployeeEligibility],
        start: datetime,
        end: datetime,
    ) -> Optional[EmployeeEligibility]:
        """Get the first eligible employee free for the whole span."""
        for employee in eligible:
            if self.is_employee_free(employee.employee_id, start, end):
                return employee
        return None

    def reserve(self, employee_id: str, start: datetime, end: datetime) -> EmployeeTimeBlock:
        """Reserve an employee for [start, end)."""
        block = EmployeeTimeBlock(employee_id=employee_id, start=start, end=end)
        self.time_blocks.setdefault(employee_id, []).append(block)
        return block

    def next_worker_index(self, workstation_id: str) -> int:
        """Get the workstation's current worker index and advance it."""
        current = self.worker_indices.get(workstation_id, 0)
        self.worker_indices[workstation_id] = (current + 1) % self.worker_index_cycle
        return current

    def record_finish(self, task_id: str, end: datetime) -> None:
        self.finish_instants[task_id] = end

    def finish_of(self, task_id: str) -> Optional[datetime]:
        """Get a committed task's finish instant, if it was scheduled."""
        return self.finish_instants.get(task_id)

    def is_committed(self, task_id: str) -> bool:
        return task_id in self.finish_instants

    def skip(
        self,
        task_id: str,
        project_id: str,
        reason: UnscheduledReason,
        message: str,
    ) -> UnscheduledTask:
        """Record a task the run could not place."""
        entry = UnscheduledTask(
            task_id=task_id, project_id=project_id, reason=reason, message=message
        )
        self.unscheduled.append(entry)
        self.warnings.append(str(entry))
        return entry

    @property
    def blocks(self) -> list[EmployeeTimeBlock]:
        """All reservations, ordered by employee then start."""
        result = []
        for employee_id in sorted(self.time_blocks):
            result.extend(sorted(self.time_blocks[employee_id], key=lambda b: b.start))
        return result
