"""Write-side collaborators that persist a produced plan.

Slots are replaced per calendar date: every date a run touches is cleared
before the run's slots for it are inserted. Re-running with identical
inputs therefore yields the identical stored plan instead of duplicates.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Union

from prodplanner.domain.models import ProjectCompletion, ScheduledSlot
from prodplanner.exceptions import ScheduleWriteError

logger = logging.getLogger(__name__)


def group_by_date(slots: Iterable[ScheduledSlot]) -> dict[date, list[ScheduledSlot]]:
    """Group slots by their scheduled date, keeping input order per date."""
    by_date: dict[date, list[ScheduledSlot]] = {}
    for slot in slots:
        by_date.setdefault(slot.scheduled_date, []).append(slot)
    return by_date


class ScheduleWriter(ABC):
    """Abstract base class for plan persistence."""

    @abstractmethod
    def delete_slots_for_date(self, day: date) -> None:
        """Remove every stored slot on a date."""
        pass

    @abstractmethod
    def insert_slots(self, day: date, slots: list[ScheduledSlot]) -> None:
        """Store slots for a date."""
        pass

    @abstractmethod
    def save_completions(self, completions: list[ProjectCompletion]) -> None:
        """Replace all stored completion records."""
        pass

    def commit(self, slots: list[ScheduledSlot]) -> list[date]:
        """Persist a plan with delete-then-insert semantics per date.

        All affected dates are cleared before any insert, so a task whose
        slots moved between dates never leaves a stale copy behind.

        Args:
            slots: Slots produced by a run.

        Returns:
            The affected dates, ascending.
        """
        if not slots:
            return []

        by_date = group_by_date(slots)
        affected = sorted(by_date)
        logger.info("Clearing existing schedules for %d dates", len(affected))

        for day in affected:
            self.delete_slots_for_date(day)
        for day in affected:
            self.insert_slots(day, by_date[day])

        logger.info("Saved %d slots across %d dates", len(slots), len(affected))
        return affected


class InMemoryScheduleWriter(ScheduleWriter):
    """Keeps the stored plan in dictionaries."""

    def __init__(self):
        self.slots_by_date: dict[date, list[ScheduledSlot]] = {}
        self.completions: list[ProjectCompletion] = []

    def delete_slots_for_date(self, day: date) -> None:
        self.slots_by_date.pop(day, None)

    def insert_slots(self, day: date, slots: list[ScheduledSlot]) -> None:
        self.slots_by_date.setdefault(day, []).extend(slots)

    def save_completions(self, completions: list[ProjectCompletion]) -> None:
        self.completions = list(completions)

    def all_slots(self) -> list[ScheduledSlot]:
        """Get every stored slot, ordered by date then start."""
        result = []
        for day in sorted(self.slots_by_date):
            result.extend(sorted(self.slots_by_date[day], key=lambda s: s.start))
        return result


class JsonScheduleWriter(ScheduleWriter):
    """Stores the plan in a JSON file keyed by ISO date.

    File layout::

        {"slots": {"2024-01-15": [{...}, ...]}, "completions": [{...}]}

    A commit is applied in memory and written once, through a temporary
    file that replaces the plan file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._document: Optional[dict] = None
        self._batching = False

    def _load(self) -> dict:
        if self._document is None:
            if self.path.exists():
                try:
                    self._document = json.loads(self.path.read_text(encoding="utf-8"))
                except (OSError, json.JSONDecodeError) as e:
                    raise ScheduleWriteError(f"Cannot read existing plan {self.path}: {e}") from e
            else:
                self._document = {}
            self._document.setdefault("slots", {})
            self._document.setdefault("completions", [])
        return self._document

    def _flush(self) -> None:
        try:
            staging = self.path.with_name(self.path.name + ".tmp")
            staging.write_text(
                json.dumps(self._load(), indent=2, sort_keys=True), encoding="utf-8"
            )
            staging.replace(self.path)
        except OSError as e:
            raise ScheduleWriteError(f"Cannot write plan {self.path}: {e}") from e

    def _changed(self) -> None:
        if not self._batching:
            self._flush()

    def commit(self, slots: list[ScheduledSlot]) -> list[date]:
        """Apply a whole commit in memory, then write the file once.

        If any step fails, the file keeps the previously stored plan.
        """
        self._batching = True
        try:
            affected = super().commit(slots)
            if affected:
                self._flush()
        except Exception:
            # Drop the half-applied document; the file still holds the old plan
            self._document = None
            raise
        finally:
            self._batching = False
        return affected

    def delete_slots_for_date(self, day: date) -> None:
        self._load()["slots"].pop(day.isoformat(), None)
        self._changed()

    def insert_slots(self, day: date, slots: list[ScheduledSlot]) -> None:
        records = self._load()["slots"].setdefault(day.isoformat(), [])
        records.extend(s.to_dict() for s in slots)
        self._changed()

    def save_completions(self, completions: list[ProjectCompletion]) -> None:
        self._load()["completions"] = [c.to_dict() for c in completions]
        self._flush()
        logger.info("Saved %d project completion records", len(completions))

    def stored_slots(self) -> list[ScheduledSlot]:
        """Read back every stored slot, ordered by date then start."""
        result = []
        stored = self._load()["slots"]
        for day in sorted(stored):
            result.extend(
                sorted((ScheduledSlot.from_dict(r) for r in stored[day]), key=lambda s: s.start)
            )
        return result
