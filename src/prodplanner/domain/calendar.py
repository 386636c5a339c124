"""Business calendar resolution for teams.

Turns per-team weekly working hours (with breaks) and holiday dates into
"is this day workable" and "what is today's work window" answers. The
resolver is read-only once built and is shared by every component of a run.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from prodplanner.domain.models import (
    Holiday,
    TimeRange,
    WorkingHours,
    combine,
    host_weekday,
)

SATURDAY = 6
SUNDAY = 0


@dataclass(frozen=True)
class WorkWindow:
    """A team's work window on one date.

    Attributes:
        start: Start of the working day.
        end: End of the working day.
        breaks: Break intervals, sorted ascending by start.
    """

    start: datetime
    end: datetime
    breaks: tuple[TimeRange, ...] = field(default_factory=tuple)

    @property
    def day(self) -> date:
        return self.start.date()

    @property
    def net_minutes(self) -> int:
        """Workable minutes in the window, excluding breaks."""
        total = int((self.end - self.start).total_seconds() // 60)
        return total - sum(b.duration_minutes for b in self.breaks)

    def contains(self, instant: datetime) -> bool:
        """Check if an instant falls inside [start, end)."""
        return self.start <= instant < self.end

    def break_at(self, instant: datetime) -> Optional[TimeRange]:
        """Get the break covering an instant, if any."""
        for brk in self.breaks:
            if brk.start <= instant < brk.end:
                return brk
        return None

    def next_break_after(self, instant: datetime) -> Optional[TimeRange]:
        """Get the first break starting strictly after an instant."""
        for brk in self.breaks:
            if brk.start > instant:
                return brk
        return None

    def overlaps_break(self, rng: TimeRange) -> bool:
        return any(brk.overlaps(rng) for brk in self.breaks)


class CalendarResolver:
    """Resolves working days and work windows per team.

    Example:
        >>> resolver = CalendarResolver(working_hours, holidays)
        >>> resolver.is_working_day(date(2024, 1, 15), "production")
        True
        >>> resolver.work_window(date(2024, 1, 15), "production")
        WorkWindow(start=..., end=..., breaks=(...))
    """

    def __init__(
        self,
        working_hours: Iterable[WorkingHours],
        holidays: Iterable[Holiday] = (),
        exclude_weekends: bool = True,
    ):
        """Build the lookup tables.

        Args:
            working_hours: Weekly hour definitions for all teams.
            holidays: Holiday dates for all teams.
            exclude_weekends: If True, Saturday and Sunday are never working
                days, even when hours are defined for them.
        """
        self.exclude_weekends = exclude_weekends

        # team -> weekday -> hours; later active entries win
        self._hours: dict[str, dict[int, WorkingHours]] = {}
        for wh in working_hours:
            if not wh.is_active:
                continue
            self._hours.setdefault(wh.team, {})[wh.day_of_week] = wh

        self._holidays: dict[str, set[date]] = {}
        for holiday in holidays:
            self._holidays.setdefault(holiday.team, set()).add(holiday.date)

    @property
    def teams(self) -> set[str]:
        return set(self._hours)

    def hours_for(self, day: date, team: str) -> Optional[WorkingHours]:
        """Get the working-hour entry for a date's weekday."""
        return self._hours.get(team, {}).get(host_weekday(day))

    def is_holiday(self, day: date, team: str) -> bool:
        return day in self._holidays.get(team, set())

    def is_working_day(self, day: date, team: str) -> bool:
        """Check if a team works on a date."""
        if self.exclude_weekends and host_weekday(day) in (SATURDAY, SUNDAY):
            return False
        if self.hours_for(day, team) is None:
            return False
        return not self.is_holiday(day, team)

    def work_window(self, day: date, team: str) -> Optional[WorkWindow]:
        """Get the day's work bounds and breaks.

        Returns None if no working hours are defined for the weekday.
        Holidays and weekend exclusion are the caller's concern, via
        ``is_working_day``.
        """
        wh = self.hours_for(day, team)
        if wh is None:
            return None

        breaks = tuple(
            sorted(
                (
                    TimeRange(combine(day, b.start_time), combine(day, b.end_time))
                    for b in wh.breaks
                ),
                key=lambda b: b.start,
            )
        )
        return WorkWindow(
            start=combine(day, wh.start_time),
            end=combine(day, wh.end_time),
            breaks=breaks,
        )

    def next_working_day(
        self,
        day: date,
        team: str,
        max_days: int = 365,
    ) -> Optional[date]:
        """Get the first working day strictly after ``day``.

        Args:
            day: Date to search from (excluded).
            team: Team whose calendar applies.
            max_days: Number of calendar days to look ahead.

        Returns:
            The next working date, or None if none exists within max_days.
        """
        for offset in range(1, max_days + 1):
            candidate = day + timedelta(days=offset)
            if self.is_working_day(candidate, team):
                return candidate
        return None

    def working_days(self, start: date, end: date, team: str) -> list[date]:
        """List working days in [start, end]."""
        days = []
        current = start
        while current <= end:
            if self.is_working_day(current, team):
                days.append(current)
            current += timedelta(days=1)
        return days
