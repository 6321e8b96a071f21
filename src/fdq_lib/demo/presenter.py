# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fdq_lib.core.common import get_panel_width
from fdq_lib.core.config import CFG

from .experiment import ExperimentResult, WriteMode


class DemoPresenter:
    """
    Presents the results of the truncation experiment side by side.
    """

    _STATEMENTS = {
        WriteMode.PATH: "echo line > {target}",
        WriteMode.DUPLICATE: "echo line >&{sink}",
    }

    def __init__(self, results: list[ExperimentResult], sink_fd: int | None = None):
        """
        Initialize the presenter.

        Args:
            results (list[ExperimentResult]): Results to present.
            sink_fd (int | None): Slot of the program's standard output,
                used in the displayed statements. Defaults to `CFG.demo.sink_fd`.
        """
        self._results = results
        self._sink_fd = CFG.demo.sink_fd if sink_fd is None else sink_fd

    def createComparisonPanel(self, console: Console | None = None) -> Group:
        """
        Create a Rich panel comparing the results.

        Args:
            console (Console | None): Optional Rich Console instance.
                If None, a new Console will be created.

        Returns:
            Group: Rich Group containing the comparison table.
        """
        console = console or Console()

        panel = Panel(
            self._createComparisonTable(),
            title=Text(
                "TRUNCATION EXPERIMENT",
                style=CFG.demo_presenter.title_style,
                justify="center",
            ),
            border_style=CFG.demo_presenter.border_style,
            padding=(1, 1),
            width=get_panel_width(
                console,
                1,
                CFG.demo_presenter.min_width,
                CFG.demo_presenter.max_width,
            ),
            expand=False,
        )

        return Group(Text(""), panel, Text(""))

    def _createComparisonTable(self) -> Table:
        """
        Construct a table with one row per experiment result.
        """
        table = Table(show_header=True, box=None, padding=(0, 1))

        for header, justify in [
            ("Statement", "left"),
            ("Writes", "right"),
            ("Opens", "right"),
            ("Truncations", "right"),
            ("Lines kept", "right"),
            ("Final content", "left"),
        ]:
            table.add_column(
                header=Text(header, style=CFG.demo_presenter.headers_style),
                justify=justify,
            )

        for result in self._results:
            table.add_row(
                Text(self._statement(result), style=CFG.demo_presenter.main_style),
                Text(str(result.writes), style=CFG.demo_presenter.main_style),
                Text(str(result.open_calls), style=CFG.demo_presenter.main_style),
                Text(str(result.truncate_calls), style=CFG.demo_presenter.main_style),
                Text(
                    f"{result.lines_kept}/{result.writes}",
                    style=CFG.demo_presenter.lost_style
                    if result.lines_lost
                    else CFG.demo_presenter.kept_style,
                ),
                Text(
                    " | ".join(result.content.splitlines()) or "(empty)",
                    style=CFG.demo_presenter.main_style,
                ),
            )

        return table

    def _statement(self, result: ExperimentResult) -> str:
        """Return the shell statement equivalent to one write of the experiment."""
        return self._STATEMENTS[result.mode].format(
            target=result.target, sink=self._sink_fd
        )
