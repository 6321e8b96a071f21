# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from rich.console import Console, Group
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from fdq_lib.core.common import get_panel_width, truncate_text
from fdq_lib.core.config import CFG
from fdq_lib.properties.post import CodeBlock, Post

from .checker import PostReport


class PostsPresenter:
    """
    Presents the results of checking posts.
    """

    def __init__(self, reports: list[PostReport]):
        self._reports = reports

    def createPostsPanel(self, console: Console | None = None) -> Group:
        """
        Create a Rich panel summarizing the checked posts.

        Args:
            console (Console | None): Optional Rich Console instance.
                If None, a new Console will be created.

        Returns:
            Group: Rich Group containing the summary panel.
        """
        console = console or Console()

        n_problems = sum(1 for report in self._reports if not report.ok)
        summary = Text(
            f"{len(self._reports)} posts checked, {n_problems} with problems",
            style=CFG.posts_presenter.problem_style
            if n_problems
            else CFG.posts_presenter.ok_style,
        )

        panel = Panel(
            Group(self._createPostsTable(), Text(""), summary),
            title=Text(
                "POSTS", style=CFG.posts_presenter.title_style, justify="center"
            ),
            border_style=CFG.posts_presenter.border_style,
            padding=(1, 1),
            width=get_panel_width(
                console,
                1,
                CFG.posts_presenter.min_width,
                CFG.posts_presenter.max_width,
            ),
            expand=False,
        )

        return Group(Text(""), panel, Text(""))

    def _createPostsTable(self) -> Table:
        table = Table(show_header=True, box=None, padding=(0, 1))

        for header in ["Post", "Title", "Date", "Slug", "Status"]:
            table.add_column(
                header=Text(header, style=CFG.posts_presenter.headers_style),
                justify="left",
            )

        style = CFG.posts_presenter.main_style
        for report in self._reports:
            post = report.post
            status = (
                Text("ok", style=CFG.posts_presenter.ok_style)
                if report.ok
                else Text(
                    "\n".join(report.problems), style=CFG.posts_presenter.problem_style
                )
            )

            table.add_row(
                Text(str(report.path), style=style),
                Text(
                    truncate_text(
                        str(post.title or "") if post else "",
                        CFG.posts_presenter.max_title_length,
                    ),
                    style=style,
                ),
                Text(str(post.date or "") if post else "", style=style),
                Text(str(post.slug or "") if post else "", style=style),
                status,
            )

        return table


class ExamplesPresenter:
    """
    Presents code blocks embedded in a post.
    """

    def __init__(self, post: Post, blocks: list[CodeBlock]):
        self._post = post
        self._blocks = blocks

    def createExamplesGroup(self) -> Group:
        """
        Create a Rich group with one panel per code block.
        """
        panels = []
        for i, block in enumerate(self._blocks, start=1):
            title = f"[{i}] {block.lang or 'text'}  {self._post.path}:{block.line}"
            panels.append(
                Panel(
                    Syntax(block.code.rstrip("\n"), block.lang or "text"),
                    title=Text(title, style=CFG.posts_presenter.title_style),
                    title_align="left",
                    border_style=CFG.posts_presenter.border_style,
                    expand=True,
                )
            )

        return Group(*panels)
