"""Tests for business calendar resolution."""

from datetime import date, datetime, time

import pytest

from prodplanner.domain.calendar import CalendarResolver
from prodplanner.domain.models import BreakInterval, Holiday, WorkingHours, host_weekday

MONDAY = date(2024, 1, 15)
FRIDAY = date(2024, 1, 19)
SATURDAY = date(2024, 1, 20)
SUNDAY = date(2024, 1, 21)
NEXT_MONDAY = date(2024, 1, 22)


class TestHostWeekday:
    """Tests for the 0 = Sunday weekday convention."""

    def test_sunday_is_zero(self):
        assert host_weekday(SUNDAY) == 0

    def test_monday_is_one(self):
        assert host_weekday(MONDAY) == 1

    def test_saturday_is_six(self):
        assert host_weekday(SATURDAY) == 6


class TestIsWorkingDay:
    """Tests for CalendarResolver.is_working_day."""

    def test_weekday_with_hours(self, calendar):
        """A weekday with defined hours is a working day."""
        assert calendar.is_working_day(MONDAY, "production") is True
        assert calendar.is_working_day(FRIDAY, "production") is True

    def test_weekend_without_hours(self, calendar):
        """Weekends have no hours and are not working days."""
        assert calendar.is_working_day(SATURDAY, "production") is False
        assert calendar.is_working_day(SUNDAY, "production") is False

    def test_holiday_is_not_working(self, weekday_hours):
        """A holiday of the team overrides its working hours."""
        resolver = CalendarResolver(weekday_hours, [Holiday("production", MONDAY)])
        assert resolver.is_working_day(MONDAY, "production") is False
        assert resolver.is_working_day(date(2024, 1, 16), "production") is True

    def test_holiday_of_other_team_ignored(self, weekday_hours):
        """Holidays only apply to their own team."""
        resolver = CalendarResolver(weekday_hours, [Holiday("installation", MONDAY)])
        assert resolver.is_working_day(MONDAY, "production") is True

    def test_unknown_team_never_works(self, calendar):
        assert calendar.is_working_day(MONDAY, "installation") is False

    def test_inactive_hours_ignored(self, weekday_hours):
        """Inactive entries do not make a day workable."""
        weekday_hours[0].is_active = False  # Monday
        resolver = CalendarResolver(weekday_hours)
        assert resolver.is_working_day(MONDAY, "production") is False

    def test_weekend_hours_excluded_by_default(self, weekday_hours):
        """Saturday hours are ignored while weekends are excluded."""
        saturday = WorkingHours("production", 6, time(8, 0), time(12, 0))
        resolver = CalendarResolver(weekday_hours + [saturday])
        assert resolver.is_working_day(SATURDAY, "production") is False

    def test_weekend_hours_when_not_excluded(self, weekday_hours):
        """Saturday hours count when weekend exclusion is off."""
        saturday = WorkingHours("production", 6, time(8, 0), time(12, 0))
        resolver = CalendarResolver(weekday_hours + [saturday], exclude_weekends=False)
        assert resolver.is_working_day(SATURDAY, "production") is True
        assert resolver.is_working_day(SUNDAY, "production") is False


class TestWorkWindow:
    """Tests for CalendarResolver.work_window and WorkWindow."""

    def test_window_bounds(self, calendar):
        window = calendar.work_window(MONDAY, "production")
        assert window.start == datetime(2024, 1, 15, 8, 0)
        assert window.end == datetime(2024, 1, 15, 17, 0)
        assert window.day == MONDAY

    def test_no_hours_returns_none(self, calendar):
        assert calendar.work_window(SUNDAY, "production") is None

    def test_breaks_sorted_by_start(self):
        """Breaks come back in ascending order regardless of input order."""
        hours = WorkingHours(
            team="production",
            day_of_week=1,
            start_time=time(7, 0),
            end_time=time(16, 0),
            breaks=[
                BreakInterval(time(14, 0), time(14, 15)),
                BreakInterval(time(9, 30), time(9, 45)),
                BreakInterval(time(12, 0), time(12, 30)),
            ],
        )
        window = CalendarResolver([hours]).work_window(MONDAY, "production")
        starts = [b.start.time() for b in window.breaks]
        assert starts == [time(9, 30), time(12, 0), time(14, 0)]

    def test_net_minutes_excludes_breaks(self, calendar):
        """9 hours minus a 30-minute break."""
        window = calendar.work_window(MONDAY, "production")
        assert window.net_minutes == 510

    def test_break_at(self, calendar):
        window = calendar.work_window(MONDAY, "production")
        brk = window.break_at(datetime(2024, 1, 15, 12, 10))
        assert brk is not None
        assert brk.end == datetime(2024, 1, 15, 12, 30)
        assert window.break_at(datetime(2024, 1, 15, 12, 30)) is None

    def test_next_break_after(self, calendar):
        window = calendar.work_window(MONDAY, "production")
        assert window.next_break_after(datetime(2024, 1, 15, 9, 0)).start == datetime(
            2024, 1, 15, 12, 0
        )
        assert window.next_break_after(datetime(2024, 1, 15, 13, 0)) is None

    def test_contains(self, calendar):
        window = calendar.work_window(MONDAY, "production")
        assert window.contains(datetime(2024, 1, 15, 8, 0))
        assert not window.contains(datetime(2024, 1, 15, 17, 0))


class TestNextWorkingDay:
    """Tests for CalendarResolver.next_working_day."""

    def test_friday_to_monday(self, calendar):
        assert calendar.next_working_day(FRIDAY, "production") == NEXT_MONDAY

    def test_skips_holiday(self, weekday_hours):
        resolver = CalendarResolver(weekday_hours, [Holiday("production", NEXT_MONDAY)])
        assert resolver.next_working_day(FRIDAY, "production") == date(2024, 1, 23)

    def test_strictly_after(self, calendar):
        assert calendar.next_working_day(MONDAY, "production") == date(2024, 1, 16)

    def test_none_within_limit(self, calendar):
        assert calendar.next_working_day(FRIDAY, "production", max_days=2) is None

    def test_working_days_range(self, calendar):
        days = calendar.working_days(MONDAY, NEXT_MONDAY, "production")
        assert len(days) == 6
        assert SATURDAY not in days
