"""Collaborator interfaces for reading inputs and persisting plans."""

from prodplanner.adapters.sources import (
    InMemoryDataSource,
    JsonDataSource,
    PlanningDataSource,
    fetch_or_fail,
    parse_planning_document,
)
from prodplanner.adapters.writer import (
    InMemoryScheduleWriter,
    JsonScheduleWriter,
    ScheduleWriter,
    group_by_date,
)

__all__ = [
    # Sources
    "InMemoryDataSource",
    "JsonDataSource",
    "PlanningDataSource",
    "fetch_or_fail",
    "parse_planning_document",
    # Writers
    "InMemoryScheduleWriter",
    "JsonScheduleWriter",
    "ScheduleWriter",
    "group_by_date",
]
