# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fdq_lib.core.common import format_duration_wdhhmmss, get_panel_width
from fdq_lib.core.config import CFG
from fdq_lib.properties.size import Size
from fdq_lib.properties.states import TaskState

from .scheduler import Schedule, ScheduleEntry


class SchedulePresenter:
    """
    Presents a simulated schedule of a workflow.
    """

    def __init__(self, schedule: Schedule):
        self._schedule = schedule

    def createSchedulePanel(self, console: Console | None = None) -> Group:
        """
        Create a Rich panel with the schedule table and summary statistics.

        Args:
            console (Console | None): Optional Rich Console instance.
                If None, a new Console will be created.

        Returns:
            Group: Rich Group containing the schedule panel.
        """
        console = console or Console()

        content = Group(
            self._createScheduleTable(),
            Text(""),
            self._createSummary(),
        )

        panel = Panel(
            content,
            title=Text(
                "SCHEDULE", style=CFG.schedule_presenter.title_style, justify="center"
            ),
            border_style=CFG.schedule_presenter.border_style,
            padding=(1, 1),
            width=get_panel_width(
                console,
                1,
                CFG.schedule_presenter.min_width,
                CFG.schedule_presenter.max_width,
            ),
            expand=False,
        )

        return Group(Text(""), panel, Text(""))

    def _createScheduleTable(self) -> Table:
        table = Table(show_header=True, box=None, padding=(0, 1))

        for header, justify in [
            ("", "center"),
            ("Task", "left"),
            ("State", "left"),
            ("CPUs", "right"),
            ("Memory", "right"),
            ("Walltime", "right"),
            ("Partition", "left"),
            ("Start", "right"),
            ("End", "right"),
        ]:
            table.add_column(
                header=Text(header, style=CFG.schedule_presenter.headers_style),
                justify=justify,
            )

        for entry in self._schedule.entries:
            table.add_row(*self._formatEntry(entry))

        return table

    def _formatEntry(self, entry: ScheduleEntry) -> list[Text]:
        style = CFG.schedule_presenter.main_style
        mark = (
            CFG.schedule_presenter.first_wave_mark
            if entry.task.name in self._schedule.first_wave
            else ""
        )

        return [
            Text(mark, style=TaskState.RUNNING.color),
            Text(entry.task.name, style=style),
            Text(str(entry.state), style=entry.state.color),
            Text(str(entry.resources.getNCPUs()), style=style),
            Text(str(entry.resources.getTotalMem()), style=style),
            Text(entry.resources.walltime or "", style=style),
            Text(entry.resources.partition or "", style=style),
            Text(self._formatOffset(entry.start), style=style),
            Text(self._formatOffset(entry.end), style=style),
        ]

    @staticmethod
    def _formatOffset(offset) -> str:
        return "" if offset is None else format_duration_wdhhmmss(offset)

    def _createSummary(self) -> Text:
        """
        Summarize the capacity, peak usage, makespan and rejected tasks.
        """
        schedule = self._schedule
        capacity = schedule.capacity
        peak = schedule.peakUsage()
        secondary = CFG.schedule_presenter.secondary_style

        text = Text()
        text.append("Capacity:   ", style="bold")
        text.append(
            f"{capacity.ncpus} CPUs, {capacity.mem or 'unlimited'} memory",
            style=secondary,
        )
        if capacity.max_walltime:
            text.append(f", max walltime {capacity.max_walltime}", style=secondary)

        text.append("\nPeak usage: ", style="bold")
        text.append(f"{peak.ncpus} CPUs, {peak.mem} memory", style=secondary)
        if capacity.mem is not None and capacity.mem > Size(0):
            text.append(
                f" ({peak.ncpus / capacity.ncpus:.0%} of CPUs, {peak.mem / capacity.mem:.0%} of memory)",
                style=secondary,
            )

        text.append("\nMakespan:   ", style="bold")
        text.append(format_duration_wdhhmmss(schedule.makespan), style=secondary)

        if schedule.first_wave:
            text.append(
                f"\n\n{CFG.schedule_presenter.first_wave_mark} ",
                style=TaskState.RUNNING.color,
            )
            text.append("starts immediately", style=secondary)

        for entry in schedule.getRejected():
            text.append(f"\n{entry.task.name}: ", style=TaskState.REJECTED.color)
            text.append(entry.reason or "", style=secondary)

        return text
