"""Tests for slot search and employee arbitration."""

from datetime import date, datetime

import pytest

from prodplanner.domain.calendar import CalendarResolver
from prodplanner.domain.models import (
    EmployeeEligibility,
    Holiday,
    Task,
    TaskStatus,
    TimeRange,
    UnscheduledReason,
)
from prodplanner.scheduling.context import RunContext
from prodplanner.scheduling.engine import SchedulingEngine
from prodplanner.scheduling.work_graph import WorkGraph


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """Instant in January 2024 (the 15th is a Monday)."""
    return datetime(2024, 1, day, hour, minute)


def _spans(ranges) -> list[tuple[datetime, datetime]]:
    return [(r.start, r.end) for r in ranges]


def _task(tid: str, duration: int, skill: str = "ST-CUT", workstations=None) -> Task:
    return Task(
        id=tid,
        title=tid,
        duration=duration,
        project_id="P1",
        status=TaskStatus.TODO,
        skill_category_id=skill,
        order_key="010",
        workstation_ids=["WS-1"] if workstations is None else workstations,
    )


def _graph(*employees: EmployeeEligibility) -> WorkGraph:
    return WorkGraph(employees=list(employees))


class TestPartition:
    """Tests for SchedulingEngine.partition."""

    @pytest.fixture
    def engine(self, calendar):
        return SchedulingEngine(calendar)

    def test_full_day_split_at_break(self, engine):
        """480 minutes from 08:00 run 08:00-12:00 and 12:30-16:30."""
        ranges = engine.partition(at(15, 8), 480)
        assert _spans(ranges) == [(at(15, 8), at(15, 12)), (at(15, 12, 30), at(15, 16, 30))]

    def test_spills_into_next_day(self, engine):
        """600 minutes from 15:00 finish on the next day."""
        ranges = engine.partition(at(15, 15), 600)
        assert _spans(ranges) == [
            (at(15, 15), at(15, 17)),
            (at(16, 8), at(16, 12)),
            (at(16, 12, 30), at(16, 16, 30)),
        ]

    def test_skips_weekend(self, engine):
        """Friday afternoon work continues on Monday."""
        ranges = engine.partition(at(19, 16), 120)
        assert _spans(ranges) == [(at(19, 16), at(19, 17)), (at(22, 8), at(22, 9))]

    def test_skips_holiday(self, weekday_hours):
        holiday = CalendarResolver(weekday_hours, [Holiday("production", date(2024, 1, 16))])
        engine = SchedulingEngine(holiday)
        ranges = engine.partition(at(15, 15), 600)
        assert ranges[1].start == at(17, 8)
        assert sum(r.duration_minutes for r in ranges) == 600

    def test_start_in_break_moves_to_break_end(self, engine):
        ranges = engine.partition(at(15, 12, 10), 60)
        assert _spans(ranges) == [(at(15, 12, 30), at(15, 13, 30))]

    def test_start_before_window(self, engine):
        ranges = engine.partition(at(15, 6), 30)
        assert _spans(ranges) == [(at(15, 8), at(15, 8, 30))]

    def test_start_on_weekend(self, engine):
        ranges = engine.partition(at(20, 10), 30)
        assert _spans(ranges) == [(at(22, 8), at(22, 8, 30))]

    def test_exact_fit_before_break(self, engine):
        """Work ending exactly at the break needs a single range."""
        ranges = engine.partition(at(15, 11), 60)
        assert _spans(ranges) == [(at(15, 11), at(15, 12))]

    def test_duration_conserved_over_many_days(self, engine):
        ranges = engine.partition(at(15, 9, 45), 2000)
        assert sum(r.duration_minutes for r in ranges) == 2000
        for earlier, later in zip(ranges, ranges[1:]):
            assert earlier.end <= later.start

    def test_beyond_horizon(self, calendar):
        engine = SchedulingEngine(calendar, horizon_days=3)
        assert engine.partition(at(15, 8), 510 * 4) is None

    def test_rejects_non_positive_duration(self, engine):
        with pytest.raises(ValueError):
            engine.partition(at(15, 8), 0)


class TestFindEarliestSlots:
    """Tests for SchedulingEngine.find_earliest_slots."""

    @pytest.fixture
    def engine(self, calendar):
        return SchedulingEngine(calendar)

    @pytest.fixture
    def alice(self):
        return EmployeeEligibility("E1", "Alice", {"ST-CUT"})

    def test_no_eligible_employees(self, engine):
        assert engine.find_earliest_slots(60, [], at(15, 8), RunContext()) is None

    def test_clamps_to_window_start(self, engine, alice):
        ranges, employee = engine.find_earliest_slots(60, [alice], at(15, 5), RunContext())
        assert ranges[0].start == at(15, 8)
        assert employee is alice

    def test_min_start_after_day_end(self, engine, alice):
        ranges, _ = engine.find_earliest_slots(60, [alice], at(15, 18), RunContext())
        assert ranges[0].start == at(16, 8)

    def test_min_start_inside_break(self, engine, alice):
        ranges, _ = engine.find_earliest_slots(60, [alice], at(15, 12, 5), RunContext())
        assert ranges[0].start == at(15, 12, 30)

    def test_waits_for_busy_employee(self, engine, alice):
        """The first start is the first step where the employee is free."""
        context = RunContext()
        context.reserve("E1", at(15, 8), at(15, 10))
        ranges, _ = engine.find_earliest_slots(60, [alice], at(15, 8), context)
        assert ranges[0].start == at(15, 10)

    def test_off_grid_release_found_on_next_step(self, engine, alice):
        """An employee released at 10:05 is picked up at the 10:15 step."""
        context = RunContext()
        context.reserve("E1", at(15, 8), at(15, 10, 5))
        ranges, _ = engine.find_earliest_slots(60, [alice], at(15, 8), context)
        assert ranges[0].start == at(15, 10, 15)

    def test_prefers_input_order(self, engine, alice):
        bob = EmployeeEligibility("E2", "Bob", {"ST-CUT"})
        _, employee = engine.find_earliest_slots(60, [bob, alice], at(15, 8), RunContext())
        assert employee is bob

    def test_whole_span_must_be_free(self, engine, alice):
        """A start whose span crosses an existing reservation is rejected."""
        context = RunContext()
        context.reserve("E1", at(15, 15), at(16, 10))
        ranges, _ = engine.find_earliest_slots(480, [alice], at(15, 8), context)
        assert ranges[0].start == at(16, 10)

    def test_gap_before_reservation_used(self, engine, alice):
        context = RunContext()
        context.reserve("E1", at(15, 15), at(16, 10))
        ranges, _ = engine.find_earliest_slots(60, [alice], at(15, 8), context)
        assert _spans(ranges) == [(at(15, 8), at(15, 9))]

    def test_late_start_past_horizon_tries_next_day(self, calendar, alice):
        """A Thursday start that runs out of horizon does not end the search."""
        engine = SchedulingEngine(calendar, horizon_days=4)
        context = RunContext()
        context.reserve("E1", at(18, 8), at(18, 17))

        found = engine.find_earliest_slots(600, [alice], at(18, 8), context)

        assert found is not None
        ranges, employee = found
        assert employee is alice
        assert _spans(ranges) == [
            (at(19, 8), at(19, 12)),
            (at(19, 12, 30), at(19, 17)),
            (at(22, 8), at(22, 9, 30)),
        ]

    def test_start_with_seconds_rounds_up_to_minute(self, engine, alice):
        min_start = datetime(2024, 1, 15, 8, 0, 30)
        ranges, _ = engine.find_earliest_slots(480, [alice], min_start, RunContext())
        assert ranges[0].start == at(15, 8, 1)
        assert sum(r.duration_minutes for r in ranges) == 480


class TestScheduleTask:
    """Tests for SchedulingEngine.schedule_task."""

    @pytest.fixture
    def engine(self, calendar):
        return SchedulingEngine(calendar)

    @pytest.fixture
    def graph(self):
        return _graph(EmployeeEligibility("E1", "Alice", {"ST-CUT"}))

    def test_commits_slots_and_reservation(self, engine, graph):
        context = RunContext()
        slots = engine.schedule_task(_task("t1", 480), graph, at(15, 8), context)

        assert [(s.start, s.end) for s in slots] == [
            (at(15, 8), at(15, 12)),
            (at(15, 12, 30), at(15, 16, 30)),
        ]
        assert all(s.employee_id == "E1" and s.workstation_id == "WS-1" for s in slots)
        assert all(s.scheduled_date == date(2024, 1, 15) for s in slots)
        assert context.finish_of("t1") == at(15, 16, 30)
        # One reservation over the whole span, break included
        assert context.time_blocks["E1"][0].start == at(15, 8)
        assert context.time_blocks["E1"][0].end == at(15, 16, 30)
        assert context.slots == slots

    def test_no_double_booking(self, engine, graph):
        """A second task for the only employee starts after the first ends."""
        context = RunContext()
        first = engine.schedule_task(_task("t1", 120), graph, at(15, 8), context)
        second = engine.schedule_task(_task("t2", 120), graph, at(15, 8), context)
        assert first[-1].end == at(15, 10)
        assert second[0].start == at(15, 10)

    def test_slots_span_days_with_same_employee(self, engine, graph):
        context = RunContext()
        slots = engine.schedule_task(_task("t1", 600), graph, at(15, 15), context)
        assert {s.scheduled_date for s in slots} == {date(2024, 1, 15), date(2024, 1, 16)}
        assert {s.employee_id for s in slots} == {"E1"}

    def test_worker_index_round_robin(self, engine):
        graph = _graph(
            EmployeeEligibility("E1", "Alice", {"ST-CUT"}),
            EmployeeEligibility("E2", "Bob", {"ST-CUT"}),
        )
        context = RunContext(worker_index_cycle=2)
        indices = [
            engine.schedule_task(_task(f"t{i}", 60), graph, at(15, 8), context)[0].worker_index
            for i in range(3)
        ]
        assert indices == [0, 1, 0]

    def test_worker_index_per_workstation(self, engine, graph):
        context = RunContext()
        a = engine.schedule_task(_task("t1", 60, workstations=["WS-A"]), graph, at(15, 8), context)
        b = engine.schedule_task(_task("t2", 60, workstations=["WS-B"]), graph, at(15, 8), context)
        assert a[0].worker_index == 0
        assert b[0].worker_index == 0

    def test_first_candidate_workstation(self, engine, graph):
        context = RunContext()
        slots = engine.schedule_task(
            _task("t1", 60, workstations=["WS-B", "WS-A"]), graph, at(15, 8), context
        )
        assert slots[0].workstation_id == "WS-B"

    def test_no_workstation(self, engine, graph):
        context = RunContext()
        assert engine.schedule_task(_task("t1", 60, workstations=[]), graph, at(15, 8), context) == []
        assert context.unscheduled[0].reason == UnscheduledReason.NO_WORKSTATION

    def test_no_skill_category(self, engine, graph):
        context = RunContext()
        assert engine.schedule_task(_task("t1", 60, skill=None), graph, at(15, 8), context) == []
        assert context.unscheduled[0].reason == UnscheduledReason.NO_SKILL_CATEGORY

    def test_no_eligible_employee(self, engine, graph, caplog):
        context = RunContext()
        slots = engine.schedule_task(_task("t1", 60, skill="ST-WELD"), graph, at(15, 8), context)
        assert slots == []
        assert context.unscheduled[0].reason == UnscheduledReason.NO_ELIGIBLE_EMPLOYEE
        assert context.warnings
        assert "t1" in caplog.text
        assert context.time_blocks == {}

    def test_horizon_exceeded(self, graph):
        """No working hours for the team means no feasible start."""
        engine = SchedulingEngine(CalendarResolver([]), horizon_days=30)
        context = RunContext()
        assert engine.schedule_task(_task("t1", 60), graph, at(15, 8), context) == []
        assert context.unscheduled[0].reason == UnscheduledReason.HORIZON_EXCEEDED
        assert not context.is_committed("t1")

    def test_zero_step_rejected(self, calendar):
        with pytest.raises(ValueError):
            SchedulingEngine(calendar, step_minutes=0)
