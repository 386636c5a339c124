"""PDF generation for plan output.

This module creates printable PDF reports showing:
- A project completion summary with delivery risk
- Per-date slot listings
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from prodplanner.domain.models import (
    CompletionStatus,
    ScheduledSlot,
    ScheduleResult,
)
from prodplanner.scheduling.work_graph import WorkGraph

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    CompletionStatus.ON_TRACK: (0.4, 0.7, 0.4),  # Green
    CompletionStatus.AT_RISK: (0.9, 0.7, 0.2),  # Amber
    CompletionStatus.OVERDUE: (0.8, 0.3, 0.3),  # Red
    CompletionStatus.PENDING: (0.6, 0.6, 0.6),  # Gray
    "row_shade": (0.95, 0.95, 0.95),
}


class PDFGenerator:
    """Generates printable PDF plan reports.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(result, "plan.pdf", graph)
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
        row_height: float = 16,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.row_height = row_height

    def generate(
        self,
        result: ScheduleResult,
        output_path: Union[str, Path],
        graph: Optional[WorkGraph] = None,
        include_slots: bool = True,
    ) -> None:
        """Generate PDF report and save to file.

        Args:
            result: The plan to render.
            output_path: Path to save the PDF.
            graph: Work graph of the run, used for task titles.
            include_slots: Whether to include the per-date slot pages.
        """
        canvas = self._canvas_module()
        from reportlab.lib.pagesizes import landscape, letter

        c = canvas.Canvas(str(output_path), pagesize=landscape(letter))
        self._draw(c, result, graph, include_slots)
        c.save()

    def generate_to_buffer(
        self,
        result: ScheduleResult,
        graph: Optional[WorkGraph] = None,
        include_slots: bool = True,
    ) -> BytesIO:
        """Generate PDF and return as bytes buffer."""
        canvas = self._canvas_module()
        from reportlab.lib.pagesizes import landscape, letter

        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=landscape(letter))
        self._draw(c, result, graph, include_slots)
        c.save()
        buffer.seek(0)
        return buffer

    @staticmethod
    def _canvas_module():
        try:
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )
        return canvas

    def _draw(self, c, result: ScheduleResult, graph: Optional[WorkGraph], include_slots: bool) -> None:
        self._draw_summary_page(c, result)
        if include_slots:
            tasks = graph.tasks_by_id if graph else {}
            titles = {task_id: task.title for task_id, task in tasks.items()}
            for day, slots in result.slots_by_date().items():
                self._draw_date_pages(c, day, slots, titles)

    def _rows_per_page(self, header_height: float) -> int:
        usable = self.page_height - 2 * self.margin - header_height - 40
        return max(1, int(usable / self.row_height))

    def _draw_summary_page(self, c, result: ScheduleResult) -> None:
        """Draw the completion summary page."""
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Production Plan - from {result.start.strftime('%A, %B %d, %Y %H:%M')}",
        )

        y = self.page_height - self.margin - 50
        c.setFont("Helvetica", 10)
        stats = [
            f"Projects planned: {len(result.project_ids)}",
            f"Tasks scheduled: {len(result.scheduled_task_ids)}",
            f"Tasks unscheduled: {len(result.unscheduled)}",
            f"Scheduled hours: {result.scheduled_minutes / 60:.1f}",
        ]
        for stat in stats:
            c.drawString(self.margin + 20, y, stat)
            y -= 14

        y -= 16
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Project Completion")
        y -= 18

        columns = [
            ("Project", 0),
            ("Client", 200),
            ("Delivery", 340),
            ("Terminal step finish", 420),
            ("Status", 560),
            ("Days left", 650),
        ]
        c.setFont("Helvetica-Bold", 9)
        for label, offset in columns:
            c.drawString(self.margin + offset, y, label)
        y -= self.row_height

        c.setFont("Helvetica", 9)
        for completion in result.completions:
            if y < self.margin + 20:
                c.showPage()
                y = self.page_height - self.margin - 20
                c.setFont("Helvetica", 9)

            finish = (
                completion.terminal_step_end.strftime("%Y-%m-%d %H:%M")
                if completion.terminal_step_end
                else "-"
            )
            values = [
                completion.project_name[:34],
                completion.client[:22],
                completion.installation_date.isoformat(),
                finish,
                completion.status.value.replace("_", " "),
                str(completion.days_remaining),
            ]

            c.setFillColorRGB(*COLORS.get(completion.status, (0.5, 0.5, 0.5)))
            c.rect(self.margin + 548, y - 2, 8, 8, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            for (_, offset), value in zip(columns, values):
                c.drawString(self.margin + offset, y, value)
            y -= self.row_height

        if result.unscheduled:
            y -= 16
            if y < self.margin + 40:
                c.showPage()
                y = self.page_height - self.margin - 20
            c.setFont("Helvetica-Bold", 12)
            c.drawString(self.margin, y, "Unscheduled Tasks")
            y -= 16
            c.setFont("Helvetica", 9)
            for entry in result.unscheduled:
                if y < self.margin + 20:
                    c.showPage()
                    y = self.page_height - self.margin - 20
                    c.setFont("Helvetica", 9)
                c.drawString(self.margin + 20, y, str(entry)[:120])
                y -= 14

        c.showPage()

    def _draw_date_pages(
        self,
        c,
        day,
        slots: list[ScheduledSlot],
        titles: dict[str, str],
    ) -> None:
        """Draw one or more pages listing a date's slots."""
        header_height = 50
        rows_per_page = self._rows_per_page(header_height)
        total_pages = (len(slots) + rows_per_page - 1) // rows_per_page

        columns = [
            ("Time", 0),
            ("Workstation", 90),
            ("Worker", 200),
            ("Employee", 250),
            ("Task", 400),
        ]

        for page_start in range(0, len(slots), rows_per_page):
            page_slots = slots[page_start : page_start + rows_per_page]

            c.setFont("Helvetica-Bold", 14)
            c.drawString(
                self.margin,
                self.page_height - self.margin - 20,
                f"Schedule - {day.strftime('%A, %B %d, %Y')}",
            )

            y = self.page_height - self.margin - header_height
            c.setFont("Helvetica-Bold", 9)
            for label, offset in columns:
                c.drawString(self.margin + offset, y, label)
            y -= self.row_height

            c.setFont("Helvetica", 9)
            for i, slot in enumerate(page_slots):
                if i % 2 == 1:
                    c.setFillColorRGB(*COLORS["row_shade"])
                    c.rect(
                        self.margin - 2, y - 4,
                        self.page_width - 2 * self.margin + 4, self.row_height,
                        fill=1, stroke=0,
                    )
                    c.setFillColorRGB(0, 0, 0)

                values = [
                    f"{slot.start:%H:%M}-{slot.end:%H:%M}",
                    slot.workstation_id[:18],
                    str(slot.worker_index),
                    slot.employee_name[:26],
                    titles.get(slot.task_id, slot.task_id)[:60],
                ]
                for (_, offset), value in zip(columns, values):
                    c.drawString(self.margin + offset, y, value)
                y -= self.row_height

            page_num = (page_start // rows_per_page) + 1
            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_num} of {total_pages}",
            )
            c.showPage()
