# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fdq_lib.core.common import get_panel_width
from fdq_lib.core.config import CFG

from .explainer import Description, Explanation


class ExplainPresenter:
    """
    Presents the step-by-step evaluation of a redirection list.
    """

    def __init__(self, explanation: Explanation):
        """
        Initialize the presenter.

        Args:
            explanation (Explanation): Evaluated redirections to present.
        """
        self._explanation = explanation
        self._slots = self._collectSlots()

    def createExplanationPanel(self, console: Console | None = None) -> Group:
        """
        Create a Rich panel showing the descriptor table after every step.

        Args:
            console (Console | None): Optional Rich Console instance.
                If None, a new Console will be created.

        Returns:
            Group: Rich Group containing the steps table and a summary.
        """
        console = console or Console()

        panel = Panel(
            Group(self._createStepsTable(), Text(""), self._createSummary()),
            title=Text(
                "REDIRECTIONS",
                style=CFG.explain_presenter.title_style,
                justify="center",
            ),
            border_style=CFG.explain_presenter.border_style,
            padding=(1, 1),
            width=get_panel_width(
                console,
                1,
                CFG.explain_presenter.min_width,
                CFG.explain_presenter.max_width,
            ),
            expand=False,
        )

        return Group(Text(""), panel, Text(""))

    def _createStepsTable(self) -> Table:
        """
        Construct a table with one row per step and one column per descriptor slot.
        """
        table = Table(show_header=True, box=None, padding=(0, 1))

        table.add_column(
            header=Text("Step", style=CFG.explain_presenter.headers_style),
            justify="left",
        )
        for fd in self._slots:
            table.add_column(
                header=Text(str(fd), style=CFG.explain_presenter.headers_style),
                justify="left",
            )

        table.add_row(
            Text("(start)", style=CFG.explain_presenter.closed_style),
            *[
                self._formatSlot(self._explanation.initial.get(fd), False)
                for fd in self._slots
            ],
        )

        for step in self._explanation.steps:
            label = str(step.redirection)
            if step.source != step.redirection:
                label += f"  [{step.source}]"

            table.add_row(
                Text(label, style=CFG.explain_presenter.main_style),
                *[
                    self._formatSlot(
                        step.table.get(fd), fd == step.redirection.fd, step.truncated
                    )
                    for fd in self._slots
                ],
            )

        return table

    def _createSummary(self) -> Text:
        """
        Create a summary of open calls, shared descriptions, and conflicts.
        """
        summary = Text(
            f"open calls: {self._explanation.countOpens()}, "
            f"truncations: {self._explanation.countTruncations()}\n",
            style=CFG.explain_presenter.main_style,
        )

        for fd in sorted(self._explanation.final):
            if shared := self._explanation.sharing(fd):
                summary.append(
                    f"{fd} shares its open file description with {', '.join(map(str, shared))}\n",
                    style=CFG.explain_presenter.main_style,
                )

        for path in self._explanation.conflicts():
            summary.append(
                f"'{path}' is opened for writing more than once: writes will overwrite each other\n",
                style=CFG.explain_presenter.warning_style,
            )

        summary.rstrip()
        return summary

    def _collectSlots(self) -> list[int]:
        """Return all descriptor slots appearing in the explanation."""
        slots = set(self._explanation.initial)
        for step in self._explanation.steps:
            slots.update(step.table)
            slots.add(step.redirection.fd)

        return sorted(slots)

    @staticmethod
    def _formatSlot(
        description: Description | None, changed: bool, truncated: bool = False
    ) -> Text:
        """
        Format the content of a single descriptor slot.
        """
        if description is None:
            return Text("closed", style=CFG.explain_presenter.closed_style)

        text = str(description)
        if changed and truncated:
            text += " ✂"

        return Text(
            text,
            style=CFG.explain_presenter.changed_style
            if changed
            else CFG.explain_presenter.main_style,
        )
