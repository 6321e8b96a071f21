# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Configuration system for fdq.

This module defines dataclasses representing all configurable aspects of fdq,
including environment variables, redirection and experiment settings,
scheduler defaults, post checking rules, presentation settings, and exit codes.

The `Config` class loads user configuration from a TOML file (if available)
and provides a globally accessible `CFG` instance.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Self


@dataclass
class EnvironmentVariables:
    """Environment variable names used by fdq."""

    # Enables fdq debug mode.
    debug_mode: str = "FDQ_DEBUG"
    # Explicit path to the fdq config file.
    config: str = "FDQ_CONFIG"


@dataclass
class RedirectSettings:
    """Settings for applying redirections."""

    # Permission bits used when a redirection creates a file (umask applies).
    file_mode: int = 0o666
    # Pattern of the device path referring to an open descriptor.
    device_pattern: str = "/dev/fd/{fd}"


@dataclass
class DemoSettings:
    """Settings for the truncation experiment."""

    # Number of write statements performed by default.
    writes: int = 3
    # Descriptor slot acting as the experiment's standard output.
    sink_fd: int = 60
    # Descriptor slot used by individual write statements.
    work_fd: int = 61
    # Name of the output file created when no output is given.
    output_name: str = "fdq_demo.out"
    # Pattern of the lines written by the experiment.
    line_pattern: str = "line {index}"


@dataclass
class SchedulerSettings:
    """Default resources of a task that declares nothing."""

    # Number of CPU cores.
    ncpus: int = 1
    # Amount of memory.
    mem: str = "1gb"
    # Walltime.
    walltime: str = "1h"


@dataclass
class PostSettings:
    """Settings for checking blog posts."""

    # Front matter fields that every post must define.
    required_fields: list[str] = field(
        default_factory=lambda: ["title", "author", "date", "slug"]
    )
    # Front matter fields that must be lists.
    list_fields: list[str] = field(default_factory=lambda: ["categories", "tags"])
    # Suffixes of files considered to be posts.
    suffixes: list[str] = field(default_factory=lambda: [".md", ".markdown"])
    # Regular expression a slug must match.
    slug_pattern: str = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


@dataclass
class ExplainPresenterSettings:
    """Settings for ExplainPresenter."""

    # Maximal width of the explanation panel.
    max_width: int | None = None
    # Minimal width of the explanation panel.
    min_width: int | None = 60
    # Style used for border lines.
    border_style: str = "white"
    # Style used for the title.
    title_style: str = "white bold"
    # Style used for table headers.
    headers_style: str = "default"
    # Style used for table values.
    main_style: str = "white"
    # Style used for slots changed by the current step.
    changed_style: str = "bright_yellow"
    # Style used for closed slots.
    closed_style: str = "grey50"
    # Style used for warnings.
    warning_style: str = "bright_red"


@dataclass
class DemoPresenterSettings:
    """Settings for DemoPresenter."""

    # Maximal width of the comparison panel.
    max_width: int | None = None
    # Minimal width of the comparison panel.
    min_width: int | None = 70
    # Style used for border lines.
    border_style: str = "white"
    # Style used for the title.
    title_style: str = "white bold"
    # Style used for table headers.
    headers_style: str = "default"
    # Style used for table values.
    main_style: str = "white"
    # Style used for lost lines.
    lost_style: str = "bright_red"
    # Style used for kept lines.
    kept_style: str = "bright_green"


@dataclass
class SchedulePresenterSettings:
    """Settings for SchedulePresenter."""

    # Maximal width of the schedule panel.
    max_width: int | None = None
    # Minimal width of the schedule panel.
    min_width: int | None = 80
    # Style used for border lines.
    border_style: str = "white"
    # Style used for the title.
    title_style: str = "white bold"
    # Style used for table headers.
    headers_style: str = "default"
    # Style used for table values.
    main_style: str = "white"
    # Style used for summary statistics.
    secondary_style: str = "grey70"
    # Mark used to denote tasks starting immediately.
    first_wave_mark: str = "●"


@dataclass
class PostsPresenterSettings:
    """Settings for PostsPresenter."""

    # Maximal width of the posts panel.
    max_width: int | None = None
    # Minimal width of the posts panel.
    min_width: int | None = 80
    # Maximum displayed length of a post title before truncation.
    max_title_length: int = 40
    # Style used for border lines.
    border_style: str = "white"
    # Style used for the title.
    title_style: str = "white bold"
    # Style used for table headers.
    headers_style: str = "default"
    # Style used for table values.
    main_style: str = "white"
    # Style used for valid posts.
    ok_style: str = "bright_green"
    # Style used for problems.
    problem_style: str = "bright_red"


@dataclass
class DateFormats:
    """Date and time format strings."""

    # Standard date format used by fdq.
    standard: str = "%Y-%m-%d %H:%M:%S"
    # Date formats accepted in front matter of posts.
    post: list[str] = field(
        default_factory=lambda: ["%Y-%m-%d", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S"]
    )


@dataclass
class ExitCodes:
    """Exit codes used for various errors."""

    # Default error code for failures of fdq commands.
    default: int = 91
    # Returned when the child process of `fdq run` cannot be started.
    run_failed: int = 92
    # Returned on an unexpected or unhandled error.
    unexpected_error: int = 99


@dataclass
class StateColors:
    """Color scheme for TaskState display."""

    # Style used for pending tasks.
    pending: str = "bright_magenta"
    # Style used for running tasks.
    running: str = "bright_blue"
    # Style used for finished tasks.
    finished: str = "bright_green"
    # Style used for rejected tasks.
    rejected: str = "bright_red"


@dataclass
class SizeOptions:
    """Options associated with the Size dataclass."""

    # Maximal error acceptable when rounding Size values for display.
    max_rounding_error: float = 0.1


@dataclass
class Config:
    """Main configuration for fdq."""

    env_vars: EnvironmentVariables = field(default_factory=EnvironmentVariables)
    redirect: RedirectSettings = field(default_factory=RedirectSettings)
    demo: DemoSettings = field(default_factory=DemoSettings)
    scheduler: SchedulerSettings = field(default_factory=SchedulerSettings)
    posts: PostSettings = field(default_factory=PostSettings)
    explain_presenter: ExplainPresenterSettings = field(
        default_factory=ExplainPresenterSettings
    )
    demo_presenter: DemoPresenterSettings = field(
        default_factory=DemoPresenterSettings
    )
    schedule_presenter: SchedulePresenterSettings = field(
        default_factory=SchedulePresenterSettings
    )
    posts_presenter: PostsPresenterSettings = field(
        default_factory=PostsPresenterSettings
    )
    date_formats: DateFormats = field(default_factory=DateFormats)
    exit_codes: ExitCodes = field(default_factory=ExitCodes)
    state_colors: StateColors = field(default_factory=StateColors)
    size: SizeOptions = field(default_factory=SizeOptions)

    # Name of the fdq binary.
    binary_name: str = "fdq"

    @classmethod
    def load(cls, config_path: Path | None = None) -> Self:
        """
        Load configuration from TOML file or use defaults.

        Args:
            config_path: Explicit path to config file. If None, searches standard locations.

        Returns:
            Config instance with loaded or default values.
        """
        if config_path is None:
            config_path = Config._get_config_path()

        try:
            if config_path and config_path.exists():
                with config_path.open("rb") as f:
                    config_data = tomllib.load(f)
                return _dict_to_dataclass(cls, config_data)
        except Exception as e:
            raise ValueError(f"Could not read fdq config '{config_path}': {e}.")

        # no config found - use defaults
        return cls()

    @staticmethod
    def _get_config_path() -> Path | None:
        """
        Search for config file in standard locations (XDG compliant).
        Returns the first existing config file, or None.
        """
        config_locations: list[Path | None] = [
            # 1. Explicit environment variable (highest priority)
            Path(env_path) if (env_path := os.getenv("FDQ_CONFIG")) else None,
            # 2. Current working directory
            Path.cwd() / "fdq_config.toml",
            # 3. XDG config home
            Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
            / "fdq"
            / "config.toml",
        ]

        for path in config_locations:
            if path and path.is_file():
                return path

        return None


def _dict_to_dataclass(cls, data: dict[str, Any]):
    """
    Recursively convert a dictionary to a dataclass instance.
    Handles nested dataclasses properly.
    """
    if not is_dataclass(cls):
        return data

    field_values = {}
    for field_info in fields(cls):
        field_name = field_info.name
        field_type = field_info.type

        if field_name in data:
            value = data[field_name]
            if is_dataclass(field_type) and isinstance(value, dict):
                field_values[field_name] = _dict_to_dataclass(field_type, value)
            else:
                field_values[field_name] = value

    return cls(**field_values)


# Global configuration for fdq.
CFG = Config.load()
