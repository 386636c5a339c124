"""Debug text output for plan analysis.

This module creates text-based debug output to analyze:
- Per-date slot listings
- Employee load across the plan
- Delivery risk per project and skipped tasks
"""

from collections import defaultdict
from pathlib import Path
from typing import Optional, Union

from prodplanner.domain.models import ScheduleResult
from prodplanner.scheduling.work_graph import WorkGraph


class DebugGenerator:
    """Generates debug text output for plan analysis.

    Creates human-readable text files showing:
    - Completion status per project
    - Every slot, grouped by date
    - Booked minutes per employee and per date
    - Tasks the run could not place
    """

    def generate(
        self,
        result: ScheduleResult,
        output_path: Union[str, Path],
        graph: Optional[WorkGraph] = None,
    ) -> str:
        """Generate debug text output and save to file.

        Args:
            result: The plan to analyze.
            output_path: Path to save the text file.
            graph: Work graph of the run, used for task titles.

        Returns:
            The generated text content.
        """
        content = self._generate_content(result, graph)
        Path(output_path).write_text(content, encoding="utf-8")
        return content

    def generate_to_string(
        self,
        result: ScheduleResult,
        graph: Optional[WorkGraph] = None,
    ) -> str:
        """Generate debug text output and return as string."""
        return self._generate_content(result, graph)

    def _generate_content(
        self,
        result: ScheduleResult,
        graph: Optional[WorkGraph],
    ) -> str:
        """Generate the full debug content."""
        tasks = graph.tasks_by_id if graph else {}
        lines = []

        # Header
        lines.append("=" * 80)
        lines.append(f"PLAN DEBUG OUTPUT - from {result.start:%Y-%m-%d %H:%M}")
        lines.append("=" * 80)
        lines.append("")

        by_date = result.slots_by_date()
        lines.append(f"Projects: {len(result.project_ids)}")
        lines.append(f"Tasks scheduled: {len(result.scheduled_task_ids)}")
        lines.append(f"Tasks unscheduled: {len(result.unscheduled)}")
        lines.append(f"Slots: {len(result.slots)} across {len(by_date)} dates")
        lines.append(f"Scheduled hours: {result.scheduled_minutes / 60:.1f}")
        lines.append("")

        # Completion table
        lines.append("-" * 80)
        lines.append("PROJECT COMPLETION")
        lines.append("-" * 80)
        lines.append(
            f"{'Project':<24} {'Delivery':<10} {'Terminal finish':<16} {'Status':<10} {'Days':>5}"
        )
        lines.append("-" * 80)
        for completion in result.completions:
            finish = (
                completion.terminal_step_end.strftime("%Y-%m-%d %H:%M")
                if completion.terminal_step_end
                else "-"
            )
            lines.append(
                f"{completion.project_name[:24]:<24} "
                f"{completion.installation_date.isoformat():<10} "
                f"{finish:<16} {completion.status.value:<10} {completion.days_remaining:>5}"
            )
        lines.append("")

        # Per-date listing
        lines.append("-" * 80)
        lines.append("SLOTS BY DATE")
        lines.append("-" * 80)
        for day, slots in by_date.items():
            lines.append(f"\n{day.strftime('%A %Y-%m-%d')} ({len(slots)} slots):")
            for slot in slots:
                task = tasks.get(slot.task_id)
                title = (task.title if task else slot.task_id)[:28]
                lines.append(
                    f"  {slot.start:%H:%M}-{slot.end:%H:%M} {slot.workstation_id:<10} "
                    f"#{slot.worker_index} {slot.employee_name[:16]:<16} {title}"
                )
        lines.append("")

        # Employee load
        lines.append("-" * 80)
        lines.append("EMPLOYEE LOAD (hours)")
        lines.append("-" * 80)
        load: dict[str, int] = defaultdict(int)
        names: dict[str, str] = {}
        for slot in result.slots:
            load[slot.employee_id] += slot.duration_minutes
            names[slot.employee_id] = slot.employee_name or slot.employee_id
        for employee_id in sorted(load, key=lambda e: -load[e]):
            hours = load[employee_id] / 60
            bar = "#" * int(hours)
            lines.append(f"{names[employee_id][:20]:<20} {bar} ({hours:.1f})")
        lines.append("")

        # Daily load histogram
        lines.append("-" * 80)
        lines.append("DAILY LOAD HISTOGRAM (hours)")
        lines.append("-" * 80)
        for day, slots in by_date.items():
            hours = sum(s.duration_minutes for s in slots) / 60
            lines.append(f"{day.isoformat()}: {'#' * int(hours)} ({hours:.1f})")
        lines.append("")

        # Skipped tasks
        lines.append("-" * 80)
        lines.append("UNSCHEDULED TASKS")
        lines.append("-" * 80)
        if result.unscheduled:
            for entry in result.unscheduled:
                lines.append(f"  {entry}")
        else:
            lines.append("  None")

        lines.append("")
        lines.append("=" * 80)
        lines.append("END OF DEBUG OUTPUT")
        lines.append("=" * 80)

        return "\n".join(lines)
