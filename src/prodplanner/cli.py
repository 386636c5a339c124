"""Command-line interface for the production planner."""

import argparse
import logging
import sys
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Optional

from prodplanner.adapters.sources import InMemoryDataSource, JsonDataSource, PlanningDataSource
from prodplanner.adapters.writer import JsonScheduleWriter
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
)
from prodplanner.exceptions import PlannerError
from prodplanner.output.debug_generator import DebugGenerator
from prodplanner.output.pdf_generator import PDFGenerator
from prodplanner.scheduling.scheduler import PlanningRun, Scheduler, SchedulerConfig
from prodplanner.validation.validator import PlanValidator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

EXIT_OK = 0
EXIT_VALIDATION_FAILED = 1
EXIT_DATA_SOURCE_FAILED = 2


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Install console (and optionally file) logging for the CLI."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)


# Sample production flow: (id, name, order key, workstation, initial status)
SAMPLE_STEPS = [
    ("ST-CUT", "Cutting", "010", "WS-SAW", TaskStatus.TODO),
    ("ST-EDGE", "Edgebanding", "020", "WS-EDGE", TaskStatus.TODO),
    ("ST-DRILL", "CNC drilling", "030", "WS-CNC", TaskStatus.TODO),
    ("ST-ASSY", "Assembly", "040", "WS-ASSY", TaskStatus.HOLD),
    ("ST-PACK", "Packing", "050", "WS-PACK", TaskStatus.HOLD),
]


def create_sample_data(
    project_count: int = 5,
    start_day: Optional[date] = None,
) -> InMemoryDataSource:
    """Create sample planning data for demos.

    Args:
        project_count: Number of projects to create.
        start_day: First day of production. If None, uses today.
    """
    if start_day is None:
        start_day = date.today()

    categories = [
        SkillCategory(id=sid, name=name, order_key=key, is_terminal=(sid == "ST-PACK"))
        for sid, name, key, _, _ in SAMPLE_STEPS
    ]

    # Assembly waits for drilling, packing waits for assembly
    prerequisites = [
        PrerequisiteLink("ST-ASSY", "ST-DRILL"),
        PrerequisiteLink("ST-PACK", "ST-ASSY"),
    ]

    names = ["Alice", "Bob", "Carol", "David", "Eve", "Frank", "Grace", "Henry"]
    skills = [
        {"ST-CUT", "ST-EDGE"},
        {"ST-CUT"},
        {"ST-EDGE", "ST-DRILL"},
        {"ST-DRILL"},
        {"ST-ASSY"},
        {"ST-ASSY", "ST-PACK"},
        {"ST-PACK"},
        {"ST-CUT", "ST-ASSY"},
    ]
    employees = [
        EmployeeEligibility(employee_id=f"E{i + 1:03d}", employee_name=name, skill_category_ids=skill_set)
        for i, (name, skill_set) in enumerate(zip(names, skills))
    ]

    clients = ["Nordhaus", "Van Dijk Interieur", "Meyer GmbH", "Atelier Blanc"]
    projects = []
    tasks = []
    for i in range(project_count):
        project_id = f"P{i + 1:03d}"
        projects.append(
            Project(
                id=project_id,
                name=f"Kitchen {i + 1:02d}",
                client=clients[i % len(clients)],
                installation_date=start_day + timedelta(days=10 + 4 * i),
                status=ProjectStatus.IN_PROGRESS if i % 3 == 0 else ProjectStatus.PLANNED,
                start_date=start_day,
            )
        )

        for j, (sid, name, key, workstation, status) in enumerate(SAMPLE_STEPS):
            # Vary the work content per project
            duration = 120 + 60 * ((i + j) % 4)
            tasks.append(
                Task(
                    id=f"{project_id}-T{j + 1:02d}",
                    title=f"{name} - Kitchen {i + 1:02d}",
                    duration=duration,
                    project_id=project_id,
                    status=status,
                    skill_category_id=sid,
                    order_key=key,
                    workstation_ids=[workstation],
                )
            )

    # Monday (1) to Friday (5), with a lunch break
    working_hours = [
        WorkingHours(
            team="production",
            day_of_week=day_of_week,
            start_time=time(8, 0),
            end_time=time(17, 0),
            breaks=[BreakInterval(time(12, 0), time(12, 30))],
        )
        for day_of_week in range(1, 6)
    ]

    holidays = [Holiday(team="production", date=start_day + timedelta(days=7))]

    return InMemoryDataSource(
        projects=projects,
        tasks=tasks,
        skill_categories=categories,
        eligibility=employees,
        prerequisites=prerequisites,
        working_hours=working_hours,
        holidays=holidays,
    )


def _execute(
    source: PlanningDataSource,
    config: SchedulerConfig,
    start: datetime,
    report_path: Optional[str] = None,
    debug_path: Optional[str] = None,
    output_path: Optional[str] = None,
) -> int:
    """Plan, validate, print, and optionally write and report."""
    scheduler = Scheduler(source, config)
    try:
        run: PlanningRun = scheduler.plan(start)
    except PlannerError as e:
        logger.error("Scheduling aborted: %s", e)
        print(f"\nError: {e}")
        return EXIT_DATA_SOURCE_FAILED

    result = run.result
    stats = scheduler.calculate_stats(run)

    print(f"\nPlan generated from {start:%Y-%m-%d %H:%M}")
    print(f"  Projects: {stats['total_projects']}")
    print(f"  Scheduled: {stats['scheduled_tasks']}/{stats['total_tasks']} tasks")
    print(f"  Slots: {stats['total_slots']} across {stats['dates_touched']} dates")
    print(f"  Scheduled hours: {stats['scheduled_minutes'] / 60:.1f}")
    print(f"  Employees used: {stats['employees_used']}")

    print("\n  Completion:")
    for completion in result.completions:
        finish = (
            f"{completion.terminal_step_end:%Y-%m-%d %H:%M}"
            if completion.terminal_step_end
            else "not scheduled"
        )
        print(
            f"    {completion.project_name:<20} delivery {completion.installation_date} "
            f"finish {finish:<16} {completion.status.value} "
            f"({completion.days_remaining} days left)"
        )

    if result.unscheduled:
        print(f"\n  Unscheduled: {len(result.unscheduled)} tasks")
        for entry in result.unscheduled[:5]:
            print(f"    - {entry}")
        if len(result.unscheduled) > 5:
            print(f"    ... and {len(result.unscheduled) - 5} more")

    validation = PlanValidator().validate(result, run.graph, run.calendar, config.team)
    if validation.is_valid:
        print("\n  Validation: PASSED")
    else:
        print(f"\n  Validation: FAILED ({len(validation.errors)} errors)")
        for error in validation.errors[:5]:
            print(f"    - {error}")
        if len(validation.errors) > 5:
            print(f"    ... and {len(validation.errors) - 5} more errors")
        return EXIT_VALIDATION_FAILED

    if output_path:
        try:
            affected = scheduler.commit(result, JsonScheduleWriter(output_path))
        except PlannerError as e:
            logger.error("Could not save plan: %s", e)
            print(f"\nError: {e}")
            return EXIT_DATA_SOURCE_FAILED
        print(f"\nSaved plan for {len(affected)} dates to {output_path}")

    if debug_path:
        DebugGenerator().generate(result, debug_path, run.graph)
        print(f"\nDebug output written to {debug_path}")

    if report_path:
        print(f"\nGenerating PDF: {report_path}")
        PDFGenerator().generate(result, report_path, run.graph)
        print("  PDF created successfully!")

    return EXIT_OK


def _parse_start(value: Optional[str]) -> datetime:
    if value is None:
        return datetime.combine(date.today(), time(0, 0))
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid start instant: {value!r}")


def run_demo(
    project_count: int = 5,
    start: Optional[datetime] = None,
    report_path: Optional[str] = None,
    debug_path: Optional[str] = None,
) -> int:
    """Run a demo plan on generated sample data."""
    start = start or datetime.combine(date.today(), time(0, 0))
    print(f"Generating demo plan for {project_count} projects...")

    source = create_sample_data(project_count, start.date())
    config = SchedulerConfig(project_count=project_count)
    return _execute(source, config, start, report_path, debug_path)


def run_from_file(
    input_path: str,
    config: SchedulerConfig,
    start: datetime,
    output_path: Optional[str] = None,
    report_path: Optional[str] = None,
    debug_path: Optional[str] = None,
) -> int:
    """Run a plan on data exported from the host application."""
    if not Path(input_path).exists():
        print(f"Error: input file not found: {input_path}")
        return EXIT_DATA_SOURCE_FAILED

    print(f"Planning {config.project_count} most urgent projects from {input_path}...")
    return _execute(
        JsonDataSource(input_path), config, start, report_path, debug_path, output_path
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="prodplanner - Production Floor Task Scheduler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                         Plan 5 sample projects from today
  %(prog)s demo --projects 8            Plan 8 sample projects
  %(prog)s demo --report plan.pdf       Generate PDF output

  %(prog)s run --input export.json                      Plan without saving
  %(prog)s run --input export.json --output slots.json  Plan and save slots
  %(prog)s run --input export.json --start 2024-01-15T08:00 --projects 3
        """,
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Also write log records to this file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run demo plan generation")
    demo_parser.add_argument(
        "--projects", "-n",
        type=int,
        default=5,
        help="Number of sample projects (default: 5)",
    )
    demo_parser.add_argument(
        "--start", "-s",
        type=str,
        help="Earliest start instant, ISO format (default: today 00:00)",
    )
    demo_parser.add_argument(
        "--report", "-r",
        type=str,
        help="Output PDF file path",
    )
    demo_parser.add_argument(
        "--debug", "-d",
        type=str,
        help="Output debug text file path",
    )

    # Run command
    run_parser = subparsers.add_parser("run", help="Plan exported production data")
    run_parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="JSON export of projects, tasks, calendars and eligibility",
    )
    run_parser.add_argument(
        "--output", "-o",
        type=str,
        help="JSON file the plan is saved to (slots replaced per date)",
    )
    run_parser.add_argument(
        "--projects", "-n",
        type=int,
        default=10,
        help="Number of most urgent projects to plan (default: 10)",
    )
    run_parser.add_argument(
        "--start", "-s",
        type=str,
        help="Earliest start instant, ISO format (default: today 00:00)",
    )
    run_parser.add_argument(
        "--team", "-t",
        type=str,
        default="production",
        help="Team whose calendar applies (default: production)",
    )
    run_parser.add_argument(
        "--report", "-r",
        type=str,
        help="Output PDF file path",
    )
    run_parser.add_argument(
        "--debug", "-d",
        type=str,
        help="Output debug text file path",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    if args.command not in ("demo", "run"):
        parser.print_help()
        return 1

    try:
        start = _parse_start(args.start)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    if args.command == "demo":
        return run_demo(args.projects, start, args.report, args.debug)

    config = SchedulerConfig(team=args.team, project_count=args.projects)
    return run_from_file(args.input, config, start, args.output, args.report, args.debug)


if __name__ == "__main__":
    sys.exit(main())
