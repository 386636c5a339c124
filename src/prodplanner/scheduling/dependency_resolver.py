"""Bounded resolution of HOLD tasks.

HOLD tasks wait for prerequisite skill categories within their project.
The resolver sweeps the pending set repeatedly, scheduling every task
whose prerequisites have been committed, until the set is empty or the
sweep cap is reached. The cap keeps a prerequisite cycle from looping
forever.
"""

import logging
from datetime import datetime
from typing import Optional

from prodplanner.domain.models import ScheduledSlot, Task, UnscheduledReason
from prodplanner.domain.policies import DefaultPrerequisitePolicy, PrerequisitePolicy
from prodplanner.scheduling.context import RunContext
from prodplanner.scheduling.engine import SchedulingEngine
from prodplanner.scheduling.work_graph import WorkGraph

logger = logging.getLogger(__name__)

# Returned by prerequisite_start when nothing constrains the task
NO_CONSTRAINT = datetime.min


class DependencyResolver:
    """Schedules HOLD tasks once their prerequisites are committed."""

    def __init__(
        self,
        engine: SchedulingEngine,
        policy: Optional[PrerequisitePolicy] = None,
        max_sweeps: int = 10,
    ):
        self.engine = engine
        self.policy = policy or DefaultPrerequisitePolicy()
        self.max_sweeps = max_sweeps

    def prerequisite_start(
        self,
        task: Task,
        graph: WorkGraph,
        context: RunContext,
    ) -> Optional[datetime]:
        """Get the instant a task's prerequisites allow it to start.

        Args:
            task: HOLD task to check.
            graph: Work graph with the task's project and prerequisite links.
            context: Run state holding committed finish instants.

        Returns:
            None if some prerequisite instance is not committed yet, else
            the latest finish among the committed instances, or
            ``NO_CONSTRAINT`` if nothing constrains the task.
        """
        latest = NO_CONSTRAINT
        for _, instance in graph.prerequisite_instances(task):
            if instance is None:
                if self.policy.missing_instance_satisfies():
                    continue
                return None

            finish = context.finish_of(instance.id)
            if finish is None:
                return None
            latest = max(latest, finish)

        return latest

    def resolve(
        self,
        hold_tasks: list[Task],
        graph: WorkGraph,
        global_start: datetime,
        context: RunContext,
    ) -> list[ScheduledSlot]:
        """Schedule HOLD tasks in dependency order.

        Each sweep attempts every pending task whose prerequisites are met,
        starting no earlier than ``max(global_start, prerequisite finish)``.
        A task leaves the pending set once attempted, whether or not the
        engine could place it.

        Returns:
            Slots produced for the tasks, in commit order.
        """
        produced: list[ScheduledSlot] = []
        pending = list(hold_tasks)

        sweeps = 0
        while pending and sweeps < self.max_sweeps:
            sweeps += 1
            still_pending = []

            for task in pending:
                ready_at = self.prerequisite_start(task, graph, context)
                if ready_at is None:
                    still_pending.append(task)
                    continue

                min_start = max(global_start, ready_at)
                produced.extend(self.engine.schedule_task(task, graph, min_start, context))

            if len(still_pending) == len(pending):
                # Nothing became ready
                pending = still_pending
                break
            pending = still_pending

        logger.debug("Resolved HOLD tasks in %d sweeps", sweeps)

        for task in pending:
            blockers = [
                instance.id
                for _, instance in graph.prerequisite_instances(task)
                if instance is not None and not context.is_committed(instance.id)
            ]
            context.skip(
                task.id,
                task.project_id,
                UnscheduledReason.DEPENDENCY_UNRESOLVED,
                f"prerequisites never committed: {', '.join(blockers) or 'unknown'}",
            )

        if pending:
            logger.warning("%d HOLD tasks could not be scheduled", len(pending))

        return produced
