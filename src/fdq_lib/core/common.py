# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
General utility functions for the fdq library.

This module provides helpers for YAML I/O, time durations, string
normalization, post discovery, and panel sizing.
"""

import re
from datetime import timedelta
from functools import lru_cache
from pathlib import Path

import yaml
from rich.console import Console

from .config import CFG
from .error import FDQError
from .logger import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def load_yaml_dumper() -> type[yaml.Dumper]:
    """Return the fastest available YAML dumper (CDumper if possible)."""
    try:
        from yaml import CDumper as Dumper  # type: ignore[attr-defined]

        logger.debug("Loaded YAML CDumper.")
    except ImportError:
        from yaml import Dumper

        logger.debug("Loaded default YAML dumper.")
    return Dumper


_INT_TAG = "tag:yaml.org,2002:int"
_FLOAT_TAG = "tag:yaml.org,2002:float"
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"

# YAML 1.1 numbers without the base-60 forms (1:30:00 stays a string)
_INT_PATTERN = re.compile(
    r"""^(?:[-+]?0b[0-1_]+
    |[-+]?0[0-7_]+
    |[-+]?(?:0|[1-9][0-9_]*)
    |[-+]?0x[0-9a-fA-F_]+)$""",
    re.X,
)
_FLOAT_PATTERN = re.compile(
    r"""^(?:[-+]?(?:[0-9][0-9_]*)\.[0-9_]*(?:[eE][-+][0-9]+)?
    |\.[0-9_]+(?:[eE][-+][0-9]+)?
    |[-+]?\.(?:inf|Inf|INF)
    |\.(?:nan|NaN|NAN))$""",
    re.X,
)


@lru_cache(maxsize=1)
def load_yaml_loader() -> type[yaml.SafeLoader]:
    """
    Return the fastest available safe YAML loader (CSafeLoader if possible).

    Walltimes written as H:MM:SS and dates are loaded as strings instead of
    base-60 integers and datetime objects, so that fdq validates them itself.
    """
    try:
        from yaml import (
            CSafeLoader as SafeLoader,  # ty: ignore[possibly-missing-import]
        )

        logger.debug("Loaded YAML CLoader.")
    except ImportError:
        from yaml import SafeLoader

        logger.debug("Loaded default YAML loader.")

    class PlainScalarLoader(SafeLoader):  # ty: ignore[unsupported-base]
        pass

    PlainScalarLoader.yaml_implicit_resolvers = {
        first: [
            (tag, regexp)
            for tag, regexp in resolvers
            if tag not in {_INT_TAG, _FLOAT_TAG, _TIMESTAMP_TAG}
        ]
        for first, resolvers in SafeLoader.yaml_implicit_resolvers.items()
    }
    PlainScalarLoader.add_implicit_resolver(
        _INT_TAG, _INT_PATTERN, list("-+0123456789")
    )
    PlainScalarLoader.add_implicit_resolver(
        _FLOAT_TAG, _FLOAT_PATTERN, list("-+0123456789.")
    )

    return PlainScalarLoader


def collect_posts(paths: list[Path]) -> list[Path]:
    """
    Collect post files from the provided paths.

    Files are taken as they are. Directories are searched recursively for files
    with one of the suffixes in `CFG.posts.suffixes`.

    Args:
        paths (list[Path]): Files and directories to collect posts from.

    Returns:
        list[Path]: Sorted list of unique post files.

    Raises:
        FDQError: If any of the paths does not exist.
    """
    posts: set[Path] = set()
    for path in paths:
        if not path.exists():
            raise FDQError(f"Path '{path}' does not exist.")

        if path.is_file():
            posts.add(path)
            continue

        for suffix in CFG.posts.suffixes:
            posts.update(f for f in path.rglob(f"*{suffix}") if f.is_file())

    logger.debug(f"Collected posts: {sorted(posts)}.")
    return sorted(posts)


def format_duration_wdhhmmss(td: timedelta) -> str:
    """
    Format a timedelta into a human-readable string: Xw Yd HH:MM:SS.

    Weeks and days are included only if non-zero.
    Hours, minutes, and seconds are always displayed with zero-padding.

    Examples:
        0:00:45         -> "00:00:45"
        1 day, 2:03:04  -> "1d 02:03:04"
        10 days, 5:06:07 -> "1w 3d 05:06:07"

    Args:
        td (timedelta): The duration to format.

    Returns:
        str: Formatted string in "Xw Yd HH:MM:SS" format.
    """
    total_seconds = int(td.total_seconds())

    weeks, remainder = divmod(total_seconds, 7 * 24 * 3600)
    days, remainder = divmod(remainder, 24 * 3600)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = []
    if weeks > 0:
        parts.append(f"{weeks}w")
    if days > 0:
        parts.append(f"{days}d")

    parts.append(f"{hours:02}:{minutes:02}:{seconds:02}")

    return " ".join(parts)


def hhmmss_to_duration(timestr: str) -> timedelta:
    """
    Convert a time string in HH:MM:SS (or HHH:MM:SS) format to a timedelta object.

    Examples:
        "0:00:00"   -> 0 seconds
        "1:23:45"   -> 1 hour, 23 minutes, 45 seconds
        "100:00:00" -> 100 hours

    Args:
        timestr (str): Input string in HH:MM:SS format.

    Returns:
        timedelta: The corresponding duration.

    Raises:
        FDQError: If the input string is not in a valid HH:MM:SS format.
    """
    pattern = re.compile(r"^\s*(\d+):([0-5]?\d):([0-5]?\d)\s*$")
    match = pattern.fullmatch(timestr)
    if not match:
        raise FDQError(f"Invalid HH:MM:SS time string '{timestr}'.")

    hours, minutes, seconds = map(int, match.groups())

    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def wdhms_to_hhmmss(timestr: str) -> str:
    """
    Convert a time specification in the wdhms format into (H)HH:MM:SS.

    The accepted format is a sequence of one or more integer + unit tokens,
    where unit is one of:
      w = weeks, d = days, h = hours, m = minutes, s = seconds

    Tokens may be compact (e.g. "1w2d3h") or space-separated
    (e.g. "1w 2d 3h"). The function is case-insensitive.

    Examples:
      "1w2d3h4m5s" -> "195:04:05"
      "90m"         -> "1:30:00"
      ""            -> "0:00:00"

    Args:
        timestr: Input duration string in wdhms format.

    Returns:
        Converted time as a string in (H)HH:MM:SS.

    Raises:
        FDQError: If the string does not conform to the token pattern
                  (empty or whitespace-only strings are treated as zero).
    """
    if timestr.strip() == "":
        return "0:00:00"

    full_pattern = re.compile(r"^\s*(?:\d+\s*[wdhms]\s*)+$", re.IGNORECASE)
    if not full_pattern.fullmatch(timestr):
        raise FDQError(f"Invalid time string '{timestr}'.")

    seconds_per_unit = {"w": 7 * 24 * 3600, "d": 24 * 3600, "h": 3600, "m": 60, "s": 1}
    total_seconds = sum(
        int(value) * seconds_per_unit[unit.lower()]
        for value, unit in re.findall(r"(\d+)\s*([wdhms])", timestr, re.IGNORECASE)
    )

    h, remainder = divmod(total_seconds, 3600)
    m, s = divmod(remainder, 60)

    return f"{h}:{m:02}:{s:02}"


def normalize_keys(data: dict[str, object]) -> dict[str, object]:
    """
    Return a copy of a mapping with keys converted to lowercase snake_case.

    Raises:
        FDQError: If two keys collapse into the same normalized key.
    """
    result: dict[str, object] = {}
    for key, value in data.items():
        normalized = str(key).strip().lower().replace("-", "_")
        if normalized in result:
            raise FDQError(f"Key '{key}' is defined multiple times.")
        result[normalized] = value

    return result


def truncate_text(text: str, max_length: int) -> str:
    """Shorten the text to `max_length` characters, marking the cut with an ellipsis."""
    if len(text) <= max_length:
        return text

    return text[: max(max_length - 1, 0)] + "…"


def get_panel_width(
    console: Console, factor: int, min_width: int | None, max_width: int | None
) -> int:
    """
    Calculate the width of a panel relative to the console width, constrained by
    optional minimum and maximum width values.

    Args:
        console (Console): A rich Console-like object that provides terminal size.
        factor (int): A divisor used to scale down the terminal width.
        min_width (int): The minimum allowable panel width. If None, no lower bound is applied.
        max_width (int): The maximum allowable panel width. If None, no upper bound is applied.

    Returns:
        int: The computed panel width after applying scaling and bounds.
    """
    term_width = console.size.width
    panel_width = term_width // factor
    if min_width is not None:
        panel_width = max(panel_width, min_width)
    if max_width is not None:
        panel_width = min(panel_width, max_width)

    return panel_width
