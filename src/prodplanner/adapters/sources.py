"""Read-side collaborators that supply planning inputs.

The host application owns projects, tasks, calendars and eligibility
links. The planner reads them through ``PlanningDataSource``; this module
provides an in-memory implementation and one backed by a JSON export of
the host's tables.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

from prodplanner.domain.models import (
    BreakInterval,
    EmployeeEligibility,
    Holiday,
    PrerequisiteLink,
    Project,
    ProjectStatus,
    SkillCategory,
    Task,
    TaskStatus,
    WorkingHours,
    parse_time,
)
from prodplanner.exceptions import DataSourceError, InputFormatError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PlanningDataSource(ABC):
    """Abstract base class for planning input providers."""

    @abstractmethod
    def fetch_projects(self) -> list[Project]:
        """Get all projects known to the host."""
        pass

    @abstractmethod
    def fetch_tasks(self, project_ids: list[str]) -> list[Task]:
        """Get the pending (TODO, IN_PROGRESS, HOLD) tasks of projects."""
        pass

    @abstractmethod
    def fetch_skill_categories(self) -> list[SkillCategory]:
        pass

    @abstractmethod
    def fetch_eligibility(self) -> list[EmployeeEligibility]:
        """Get which employees may perform which skill categories."""
        pass

    @abstractmethod
    def fetch_prerequisites(self) -> list[PrerequisiteLink]:
        pass

    @abstractmethod
    def fetch_terminal_skill(self) -> Optional[str]:
        """Get the skill category flagged as the last manufacturing step."""
        pass

    @abstractmethod
    def fetch_working_hours(self) -> list[WorkingHours]:
        pass

    @abstractmethod
    def fetch_holidays(self) -> list[Holiday]:
        pass


@dataclass
class InMemoryDataSource(PlanningDataSource):
    """Data source over lists the caller already holds."""

    projects: list[Project] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    skill_categories: list[SkillCategory] = field(default_factory=list)
    eligibility: list[EmployeeEligibility] = field(default_factory=list)
    prerequisites: list[PrerequisiteLink] = field(default_factory=list)
    working_hours: list[WorkingHours] = field(default_factory=list)
    holidays: list[Holiday] = field(default_factory=list)
    terminal_skill_id: Optional[str] = None

    def fetch_projects(self) -> list[Project]:
        return list(self.projects)

    def fetch_tasks(self, project_ids: list[str]) -> list[Task]:
        wanted = set(project_ids)
        return [t for t in self.tasks if t.project_id in wanted and t.is_pending]

    def fetch_skill_categories(self) -> list[SkillCategory]:
        return list(self.skill_categories)

    def fetch_eligibility(self) -> list[EmployeeEligibility]:
        return list(self.eligibility)

    def fetch_prerequisites(self) -> list[PrerequisiteLink]:
        return list(self.prerequisites)

    def fetch_terminal_skill(self) -> Optional[str]:
        if self.terminal_skill_id is not None:
            return self.terminal_skill_id
        for category in self.skill_categories:
            if category.is_terminal:
                return category.id
        return None

    def fetch_working_hours(self) -> list[WorkingHours]:
        return list(self.working_hours)

    def fetch_holidays(self) -> list[Holiday]:
        return list(self.holidays)


def parse_planning_document(document: dict) -> InMemoryDataSource:
    """Build a data source from the host's exported tables.

    Expected keys: ``projects``, ``tasks``, ``standard_tasks``,
    ``employees``, ``limit_phases``, ``working_hours``, ``holidays``.
    Missing keys are treated as empty tables.

    Raises:
        InputFormatError: If a record is missing a required field or holds
            a value that cannot be parsed.
    """
    try:
        categories = [
            SkillCategory(
                id=str(st["id"]),
                name=st.get("name", str(st["id"])),
                order_key=str(st.get("task_number") or ""),
                is_terminal=bool(st.get("is_last_production_step", False)),
            )
            for st in document.get("standard_tasks", [])
        ]
        order_keys = {c.id: c.order_key for c in categories}

        projects = []
        for p in document.get("projects", []):
            try:
                status = ProjectStatus(p.get("status", "planned"))
            except ValueError:
                # Only planned and in-progress projects are ever scheduled
                logger.warning(
                    "Skipping project %s with unknown status %r", p.get("id"), p.get("status")
                )
                continue
            projects.append(
                Project(
                    id=str(p["id"]),
                    name=p.get("name", str(p["id"])),
                    client=p.get("client") or "",
                    status=status,
                    start_date=_optional_date(p.get("start_date")),
                    installation_date=date.fromisoformat(p["installation_date"][:10]),
                )
            )

        tasks = []
        for t in document.get("tasks", []):
            skill_id = t.get("standard_task_id")
            skill_id = str(skill_id) if skill_id is not None else None
            order_key = t.get("task_number") or order_keys.get(skill_id, "")
            tasks.append(
                Task(
                    id=str(t["id"]),
                    title=t.get("title", str(t["id"])),
                    duration=int(t.get("duration") or 0),
                    project_id=str(t["project_id"]),
                    status=TaskStatus(t.get("status", "TODO")),
                    skill_category_id=skill_id,
                    order_key=str(order_key),
                    workstation_ids=[str(w) for w in t.get("workstation_ids", []) if w],
                )
            )

        eligibility = [
            EmployeeEligibility(
                employee_id=str(e["id"]),
                employee_name=e.get("name", str(e["id"])),
                skill_category_ids={str(s) for s in e.get("standard_task_ids", [])},
            )
            for e in document.get("employees", [])
        ]

        prerequisites = [
            PrerequisiteLink(
                skill_category_id=str(lp["standard_task_id"]),
                prerequisite_skill_category_id=str(lp["limit_standard_task_id"]),
            )
            for lp in document.get("limit_phases", [])
        ]

        working_hours = [
            WorkingHours(
                team=wh.get("team", "production"),
                day_of_week=int(wh["day_of_week"]),
                start_time=parse_time(wh["start_time"]),
                end_time=parse_time(wh["end_time"]),
                breaks=[
                    BreakInterval(parse_time(b["start_time"]), parse_time(b["end_time"]))
                    for b in wh.get("breaks") or []
                ],
                is_active=bool(wh.get("is_active", True)),
            )
            for wh in document.get("working_hours", [])
        ]

        holidays = [
            Holiday(team=h.get("team", "production"), date=date.fromisoformat(h["date"]))
            for h in document.get("holidays", [])
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise InputFormatError("planning document", e) from e

    return InMemoryDataSource(
        projects=projects,
        tasks=tasks,
        skill_categories=categories,
        eligibility=eligibility,
        prerequisites=prerequisites,
        working_hours=working_hours,
        holidays=holidays,
    )


def _optional_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


class JsonDataSource(PlanningDataSource):
    """Data source backed by a JSON export of the host's tables.

    The file is read once, on first access.

    Example:
        >>> source = JsonDataSource("export.json")
        >>> projects = source.fetch_projects()
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._loaded: Optional[InMemoryDataSource] = None

    def _source(self) -> InMemoryDataSource:
        if self._loaded is None:
            try:
                document = json.loads(self.path.read_text(encoding="utf-8"))
            except OSError as e:
                raise DataSourceError(f"planning data from {self.path}", e) from e
            except json.JSONDecodeError as e:
                raise InputFormatError(f"planning data from {self.path}", e) from e
            if not isinstance(document, dict):
                raise InputFormatError(f"planning data from {self.path}")
            self._loaded = parse_planning_document(document)
            logger.info(
                "Loaded %d projects and %d tasks from %s",
                len(self._loaded.projects),
                len(self._loaded.tasks),
                self.path,
            )
        return self._loaded

    def fetch_projects(self) -> list[Project]:
        return self._source().fetch_projects()

    def fetch_tasks(self, project_ids: list[str]) -> list[Task]:
        return self._source().fetch_tasks(project_ids)

    def fetch_skill_categories(self) -> list[SkillCategory]:
        return self._source().fetch_skill_categories()

    def fetch_eligibility(self) -> list[EmployeeEligibility]:
        return self._source().fetch_eligibility()

    def fetch_prerequisites(self) -> list[PrerequisiteLink]:
        return self._source().fetch_prerequisites()

    def fetch_terminal_skill(self) -> Optional[str]:
        return self._source().fetch_terminal_skill()

    def fetch_working_hours(self) -> list[WorkingHours]:
        return self._source().fetch_working_hours()

    def fetch_holidays(self) -> list[Holiday]:
        return self._source().fetch_holidays()


def fetch_or_fail(what: str, fetch: Callable[..., T], *args) -> T:
    """Call a fetch operation, converting any failure into DataSourceError.

    Args:
        what: Description of the data being fetched, for the error message.
        fetch: Bound fetch method of a data source.
        *args: Arguments passed to the fetch method.

    Raises:
        DataSourceError: If the fetch raises.
    """
    try:
        return fetch(*args)
    except DataSourceError:
        raise
    except Exception as e:
        logger.error("Error fetching %s: %s", what, e)
        raise DataSourceError(what, e) from e
