"""Work graph loading.

Collects everything the engine needs for the ranked projects: pending
tasks in project order, employee eligibility, prerequisite links between
skill categories, and the terminal manufacturing step.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from prodplanner.adapters.sources import PlanningDataSource, fetch_or_fail
from prodplanner.domain.models import (
    EmployeeEligibility,
    Project,
    SkillCategory,
    Task,
    TaskStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class WorkGraph:
    """Planning inputs for one run.

    Attributes:
        tasks_by_project: Pending tasks per project ID, sorted by order key.
        employees: Employee eligibility, in input order.
        prerequisites: Skill category ID to its prerequisite category IDs.
        skill_categories: Skill categories by ID.
        terminal_skill_id: Skill category of the last manufacturing step.
    """

    tasks_by_project: dict[str, list[Task]] = field(default_factory=dict)
    employees: list[EmployeeEligibility] = field(default_factory=list)
    prerequisites: dict[str, list[str]] = field(default_factory=dict)
    skill_categories: dict[str, SkillCategory] = field(default_factory=dict)
    terminal_skill_id: Optional[str] = None

    @property
    def all_tasks(self) -> list[Task]:
        return [t for tasks in self.tasks_by_project.values() for t in tasks]

    @property
    def tasks_by_id(self) -> dict[str, Task]:
        return {t.id: t for t in self.all_tasks}

    @property
    def terminal_step_name(self) -> Optional[str]:
        if self.terminal_skill_id is None:
            return None
        category = self.skill_categories.get(self.terminal_skill_id)
        return category.name if category else None

    def tasks_for(self, project_id: str) -> list[Task]:
        return self.tasks_by_project.get(project_id, [])

    def ready_tasks(self, project_id: str) -> list[Task]:
        """Get a project's TODO and IN_PROGRESS tasks, in order."""
        return [
            t
            for t in self.tasks_for(project_id)
            if t.status in (TaskStatus.TODO, TaskStatus.IN_PROGRESS)
        ]

    def hold_tasks(self, project_id: str) -> list[Task]:
        """Get a project's HOLD tasks, in order."""
        return [t for t in self.tasks_for(project_id) if t.is_on_hold]

    def eligible_employees(self, skill_category_id: Optional[str]) -> list[EmployeeEligibility]:
        """Get employees certified for a skill category, in input order."""
        if skill_category_id is None:
            return []
        return [e for e in self.employees if e.can_perform(skill_category_id)]

    def prerequisite_instances(self, task: Task) -> list[tuple[str, Optional[Task]]]:
        """Resolve a task's prerequisite categories within its project.

        Returns:
            One ``(prerequisite_skill_id, instance)`` pair per prerequisite
            link of the task's category. ``instance`` is the first task of
            that category in the same project, or None if the project has
            none.
        """
        if task.skill_category_id is None:
            return []

        project_tasks = self.tasks_for(task.project_id)
        result = []
        for prerequisite_id in self.prerequisites.get(task.skill_category_id, []):
            instance = next(
                (t for t in project_tasks if t.skill_category_id == prerequisite_id),
                None,
            )
            result.append((prerequisite_id, instance))
        return result


class WorkGraphLoader:
    """Loads a ``WorkGraph`` from a data source.

    Missing task durations fall back to ``default_duration`` and missing
    order keys to the skill category's key, then to ``default_order_key``.
    """

    def __init__(
        self,
        source: PlanningDataSource,
        default_duration: int = 60,
        default_order_key: str = "999",
    ):
        self.source = source
        self.default_duration = default_duration
        self.default_order_key = default_order_key

    def load(self, projects: list[Project]) -> WorkGraph:
        """Fetch and assemble the work graph for ranked projects.

        Raises:
            DataSourceError: If tasks, eligibility, skill categories or
                prerequisites cannot be fetched.
        """
        project_ids = [p.id for p in projects]

        tasks = fetch_or_fail("tasks", self.source.fetch_tasks, project_ids)
        categories = {
            c.id: c
            for c in fetch_or_fail("skill categories", self.source.fetch_skill_categories)
        }
        employees = fetch_or_fail("employee eligibility", self.source.fetch_eligibility)
        links = fetch_or_fail("prerequisite links", self.source.fetch_prerequisites)
        terminal_skill_id = self._fetch_terminal_skill()

        prerequisites: dict[str, list[str]] = {}
        for link in links:
            required = prerequisites.setdefault(link.skill_category_id, [])
            if link.prerequisite_skill_category_id not in required:
                required.append(link.prerequisite_skill_category_id)

        wanted = set(project_ids)
        tasks_by_project: dict[str, list[Task]] = {pid: [] for pid in project_ids}
        for task in tasks:
            if task.project_id not in wanted or not task.is_pending:
                continue
            tasks_by_project[task.project_id].append(self._normalize(task, categories))

        for project_tasks in tasks_by_project.values():
            project_tasks.sort(key=lambda t: t.order_key)

        logger.info(
            "Found %d tasks to schedule and %d employees with task assignments",
            sum(len(t) for t in tasks_by_project.values()),
            len(employees),
        )

        return WorkGraph(
            tasks_by_project=tasks_by_project,
            employees=list(employees),
            prerequisites=prerequisites,
            skill_categories=categories,
            terminal_skill_id=terminal_skill_id,
        )

    def _fetch_terminal_skill(self) -> Optional[str]:
        # Only used for reporting, so a failure degrades to "pending"
        try:
            return self.source.fetch_terminal_skill()
        except Exception as e:
            logger.error("Error fetching last production step: %s", e)
            return None

    def _normalize(self, task: Task, categories: dict[str, SkillCategory]) -> Task:
        duration = task.duration if task.duration > 0 else self.default_duration
        order_key = task.order_key
        if not order_key:
            category = categories.get(task.skill_category_id) if task.skill_category_id else None
            order_key = (category.order_key if category else "") or self.default_order_key

        if duration == task.duration and order_key == task.order_key:
            return task
        return Task(
            id=task.id,
            title=task.title,
            duration=duration,
            project_id=task.project_id,
            status=task.status,
            skill_category_id=task.skill_category_id,
            order_key=order_key,
            workstation_ids=list(task.workstation_ids),
        )
