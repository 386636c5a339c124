"""Delivery-risk estimation per project."""

import logging
from datetime import date, datetime
from typing import Optional

from prodplanner.domain.models import CompletionStatus, Project, ProjectCompletion
from prodplanner.domain.policies import CompletionPolicy, DefaultCompletionPolicy
from prodplanner.scheduling.context import RunContext
from prodplanner.scheduling.work_graph import WorkGraph

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class CompletionEstimator:
    """Compares each project's terminal-step finish with its delivery date."""

    def __init__(self, policy: Optional[CompletionPolicy] = None):
        self.policy = policy or DefaultCompletionPolicy()

    def terminal_finish(
        self,
        project: Project,
        graph: WorkGraph,
        context: RunContext,
    ) -> Optional[datetime]:
        """Get the latest committed finish of the project's terminal-step tasks."""
        if graph.terminal_skill_id is None:
            return None

        finishes = [
            context.finish_of(t.id)
            for t in graph.tasks_for(project.id)
            if t.skill_category_id == graph.terminal_skill_id
        ]
        finishes = [f for f in finishes if f is not None]
        return max(finishes) if finishes else None

    def estimate(
        self,
        projects: list[Project],
        graph: WorkGraph,
        context: RunContext,
        today: date,
    ) -> list[ProjectCompletion]:
        """Build one completion record per project.

        Args:
            projects: Ranked projects, most urgent first.
            graph: Work graph of the run.
            context: Run state holding committed finish instants.
            today: Reference date for ``days_remaining``.

        Returns:
            Completion records in the order of ``projects``.
        """
        completions = []
        for project in projects:
            finish = self.terminal_finish(project, graph, context)

            if finish is None:
                status = CompletionStatus.PENDING
            else:
                delivery = datetime.combine(project.installation_date, datetime.min.time())
                gap_days = (delivery - finish).total_seconds() / SECONDS_PER_DAY
                status = self.policy.classify(gap_days)

            completions.append(
                ProjectCompletion(
                    project_id=project.id,
                    project_name=project.name,
                    client=project.client,
                    installation_date=project.installation_date,
                    terminal_step_end=finish,
                    terminal_step_name=graph.terminal_step_name,
                    status=status,
                    days_remaining=(project.installation_date - today).days,
                )
            )

        logger.info(
            "Estimated completion for %d projects (%d overdue, %d at risk)",
            len(completions),
            sum(1 for c in completions if c.status == CompletionStatus.OVERDUE),
            sum(1 for c in completions if c.status == CompletionStatus.AT_RISK),
        )
        return completions
