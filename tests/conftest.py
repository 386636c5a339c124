"""Shared fixtures: a Monday-to-Friday production calendar."""

from datetime import time

import pytest

from prodplanner.domain.calendar import CalendarResolver
from prodplanner.domain.models import BreakInterval, WorkingHours


@pytest.fixture
def weekday_hours():
    """08:00-17:00 Monday to Friday with a 12:00-12:30 break."""
    return [
        WorkingHours(
            team="production",
            day_of_week=day_of_week,
            start_time=time(8, 0),
            end_time=time(17, 0),
            breaks=[BreakInterval(time(12, 0), time(12, 30))],
        )
        for day_of_week in range(1, 6)
    ]


@pytest.fixture
def calendar(weekday_hours):
    """Production calendar without holidays."""
    return CalendarResolver(weekday_hours)
