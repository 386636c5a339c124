"""Urgency ranking of projects.

The ranking is the master priority of a run: earlier-ranked projects get
first claim on every time slot and employee.
"""

from datetime import date
from typing import Iterable

from prodplanner.domain.models import Project


class UrgencyRanker:
    """Selects the projects with the nearest delivery dates."""

    def urgent_projects(
        self,
        projects: Iterable[Project],
        count: int,
        today: date,
    ) -> list[Project]:
        """Get the ``count`` most urgent planned or in-progress projects.

        Projects delivering before ``today`` are excluded. Ties keep their
        input order.

        Args:
            projects: All projects known to the host.
            count: Maximum number of projects to return.
            today: Reference date for excluding past deliveries.

        Returns:
            Projects ordered by ascending installation date.
        """
        if count <= 0:
            return []

        candidates = [
            p for p in projects if p.is_schedulable and p.installation_date >= today
        ]
        candidates.sort(key=lambda p: p.installation_date)
        return candidates[:count]
