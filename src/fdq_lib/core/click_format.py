# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Help formatting shared by all fdq commands.

Options are listed in GNU style: each option on its own line, followed by
its indented description. Redirection examples in help texts are kept
verbatim, so descriptions are never re-wrapped.
"""

import click
from click import HelpFormatter
from click_help_colors import HelpColorsCommand, HelpColorsGroup


class GNUHelpFormatter(HelpFormatter):
    """Help formatter printing headings in bold and options in GNU style."""

    def __init__(
        self,
        width: int | None = None,
        headers_color: str | None = None,
        options_color: str | None = None,
    ):
        super().__init__(width=width)
        self.headers_color = headers_color or "white"
        self.options_color = options_color or "white"

    def write_heading(self, heading: str) -> None:
        styled_heading = click.style(heading, fg=self.headers_color, bold=True)
        self.write(f"{styled_heading}\n")

    def write_usage(self, prog: str, args: str = "", prefix: str | None = None):
        styled_prefix = click.style(prefix or "Usage:", fg=self.headers_color, bold=True)
        self.write(f"{styled_prefix} {prog} {args}".rstrip() + "\n")

    def write_dl(self, rows, col_max=30, col_spacing=2) -> None:
        _ = col_max, col_spacing
        for term, definition in rows:
            self.write(f"  {click.style(term, fg=self.options_color, bold=True)}\n")
            for line in (definition or "").splitlines():
                if line.strip():
                    self.write(f"      {line}\n")
            self.write("\n")


def _format_gnu_help(command: click.Command, ctx: click.Context) -> str:
    """Render the help of `command` using `GNUHelpFormatter`."""
    formatter = GNUHelpFormatter(
        width=ctx.terminal_width,
        headers_color=getattr(command, "help_headers_color", None),
        options_color=getattr(command, "help_options_color", None),
    )
    command.format_help(ctx, formatter)
    return formatter.getvalue()


class GNUHelpColorsCommand(HelpColorsCommand):
    """Command printing its options in GNU style."""

    def get_help(self, ctx: click.Context) -> str:
        return _format_gnu_help(self, ctx)


class GNUHelpColorsGroup(HelpColorsGroup):
    """Group printing its options and subcommands in GNU style."""

    def get_help(self, ctx: click.Context) -> str:
        return _format_gnu_help(self, ctx)
