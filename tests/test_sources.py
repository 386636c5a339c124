"""Tests for planning data sources."""

import json
from datetime import date, time

import pytest

from prodplanner.adapters.sources import (
    InMemoryDataSource,
    JsonDataSource,
    fetch_or_fail,
    parse_planning_document,
)
from prodplanner.domain.models import ProjectStatus, SkillCategory, TaskStatus
from prodplanner.exceptions import DataSourceError, InputFormatError


@pytest.fixture
def document():
    """A small export of the host's tables."""
    return {
        "projects": [
            {
                "id": "P1",
                "name": "Kitchen Meyer",
                "client": "Meyer",
                "status": "in_progress",
                "start_date": "2024-01-10",
                "installation_date": "2024-02-01T00:00:00",
            },
        ],
        "tasks": [
            {
                "id": "T1",
                "title": "Cutting",
                "duration": 90,
                "status": "TODO",
                "project_id": "P1",
                "standard_task_id": "ST-CUT",
                "task_number": "010",
                "workstation_ids": ["WS-1", "WS-2"],
            },
            {
                "id": "T2",
                "title": "Packing",
                "duration": None,
                "status": "HOLD",
                "project_id": "P1",
                "standard_task_id": "ST-PACK",
                "workstation_ids": [],
            },
            {
                "id": "T3",
                "title": "Old",
                "duration": 30,
                "status": "COMPLETED",
                "project_id": "P1",
                "standard_task_id": "ST-CUT",
            },
        ],
        "standard_tasks": [
            {"id": "ST-CUT", "name": "Cutting", "task_number": "010"},
            {"id": "ST-PACK", "name": "Packing", "task_number": "050", "is_last_production_step": True},
        ],
        "employees": [
            {"id": "E1", "name": "Alice", "standard_task_ids": ["ST-CUT", "ST-PACK"]},
        ],
        "limit_phases": [
            {"standard_task_id": "ST-PACK", "limit_standard_task_id": "ST-CUT"},
        ],
        "working_hours": [
            {
                "team": "production",
                "day_of_week": 1,
                "start_time": "08:00:00",
                "end_time": "17:00",
                "breaks": [{"start_time": "12:00", "end_time": "12:30"}],
            },
            {
                "team": "production",
                "day_of_week": 2,
                "start_time": "08:00",
                "end_time": "17:00",
                "is_active": False,
            },
        ],
        "holidays": [{"team": "production", "date": "2024-01-16"}],
    }


class TestParsePlanningDocument:
    """Tests for parse_planning_document."""

    def test_projects(self, document):
        source = parse_planning_document(document)
        project = source.fetch_projects()[0]
        assert project.status == ProjectStatus.IN_PROGRESS
        assert project.installation_date == date(2024, 2, 1)
        assert project.start_date == date(2024, 1, 10)
        assert project.client == "Meyer"

    def test_pending_tasks_only(self, document):
        source = parse_planning_document(document)
        tasks = source.fetch_tasks(["P1"])
        assert [t.id for t in tasks] == ["T1", "T2"]
        assert tasks[1].status == TaskStatus.HOLD

    def test_task_fields(self, document):
        task = parse_planning_document(document).fetch_tasks(["P1"])[0]
        assert task.duration == 90
        assert task.skill_category_id == "ST-CUT"
        assert task.workstation_ids == ["WS-1", "WS-2"]

    def test_missing_task_number_uses_category(self, document):
        task = parse_planning_document(document).fetch_tasks(["P1"])[1]
        assert task.order_key == "050"
        assert task.duration == 0

    def test_eligibility_and_links(self, document):
        source = parse_planning_document(document)
        assert source.fetch_eligibility()[0].can_perform("ST-PACK")
        link = source.fetch_prerequisites()[0]
        assert link.skill_category_id == "ST-PACK"
        assert link.prerequisite_skill_category_id == "ST-CUT"

    def test_terminal_skill(self, document):
        assert parse_planning_document(document).fetch_terminal_skill() == "ST-PACK"

    def test_calendar(self, document):
        source = parse_planning_document(document)
        hours = source.fetch_working_hours()
        assert hours[0].start_time == time(8, 0)
        assert hours[0].breaks[0].end_time == time(12, 30)
        assert hours[1].is_active is False
        assert source.fetch_holidays()[0].date == date(2024, 1, 16)

    def test_missing_tables_are_empty(self):
        source = parse_planning_document({})
        assert source.fetch_projects() == []
        assert source.fetch_terminal_skill() is None

    def test_missing_required_field(self, document):
        del document["projects"][0]["installation_date"]
        with pytest.raises(InputFormatError):
            parse_planning_document(document)

    def test_unknown_status(self, document):
        document["tasks"][0]["status"] = "BLOCKED"
        with pytest.raises(InputFormatError):
            parse_planning_document(document)


class TestInMemoryDataSource:
    def test_explicit_terminal_skill_wins(self):
        source = InMemoryDataSource(
            skill_categories=[SkillCategory("A", "A", is_terminal=True)],
            terminal_skill_id="B",
        )
        assert source.fetch_terminal_skill() == "B"


class TestJsonDataSource:
    """Tests for JsonDataSource."""

    def test_loads_file(self, tmp_path, document):
        path = tmp_path / "export.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        source = JsonDataSource(path)
        assert [p.id for p in source.fetch_projects()] == ["P1"]
        assert len(source.fetch_tasks(["P1"])) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(DataSourceError):
            JsonDataSource(tmp_path / "absent.json").fetch_projects()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text("[1, 2", encoding="utf-8")
        with pytest.raises(InputFormatError):
            JsonDataSource(path).fetch_projects()

    def test_document_must_be_object(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(InputFormatError):
            JsonDataSource(path).fetch_projects()


class TestFetchOrFail:
    """Tests for fetch_or_fail."""

    def test_returns_value(self):
        assert fetch_or_fail("numbers", lambda n: [n], 3) == [3]

    def test_wraps_unexpected_errors(self):
        def broken():
            raise ConnectionError("refused")

        with pytest.raises(DataSourceError, match="Failed to fetch projects: refused") as exc_info:
            fetch_or_fail("projects", broken)
        assert isinstance(exc_info.value.cause, ConnectionError)

    def test_passes_data_source_errors_through(self):
        def broken():
            raise InputFormatError("tasks")

        with pytest.raises(InputFormatError):
            fetch_or_fail("tasks", broken)


class TestUnknownProjectStatus:
    def test_unknown_status_skips_project(self, document, caplog):
        document["projects"].append(
            {"id": "P2", "name": "Archived", "status": "archived",
             "installation_date": "2024-03-01"}
        )
        source = parse_planning_document(document)
        assert [p.id for p in source.fetch_projects()] == ["P1"]
        assert "Skipping project P2 with unknown status 'archived'" in caplog.text
