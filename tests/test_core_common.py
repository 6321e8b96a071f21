# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from datetime import timedelta
from textwrap import dedent
from unittest.mock import MagicMock

import pytest
import yaml

from fdq_lib.core.common import (
    collect_posts,
    format_duration_wdhhmmss,
    get_panel_width,
    load_yaml_loader,
    hhmmss_to_duration,
    normalize_keys,
    truncate_text,
    wdhms_to_hhmmss,
)
from fdq_lib.core.error import FDQError


@pytest.mark.parametrize(
    "td, expected",
    [
        (timedelta(seconds=45), "00:00:45"),
        (timedelta(days=1, hours=2, minutes=3, seconds=4), "1d 02:03:04"),
        (timedelta(days=10, hours=5, minutes=6, seconds=7), "1w 3d 05:06:07"),
        (timedelta(0), "00:00:00"),
    ],
)
def test_format_duration_wdhhmmss(td, expected):
    assert format_duration_wdhhmmss(td) == expected


@pytest.mark.parametrize(
    "timestr, expected",
    [
        ("0:00:00", timedelta(0)),
        ("1:23:45", timedelta(hours=1, minutes=23, seconds=45)),
        ("100:00:00", timedelta(hours=100)),
    ],
)
def test_hhmmss_to_duration(timestr, expected):
    assert hhmmss_to_duration(timestr) == expected


@pytest.mark.parametrize("timestr", ["1:2", "abc", "1:60:00", "-1:00:00"])
def test_hhmmss_to_duration_invalid(timestr):
    with pytest.raises(FDQError):
        hhmmss_to_duration(timestr)


@pytest.mark.parametrize(
    "timestr, expected",
    [
        ("1w2d3h4m5s", "195:04:05"),
        ("90m", "1:30:00"),
        ("1d 12h", "36:00:00"),
        ("30S", "0:00:30"),
        ("", "0:00:00"),
    ],
)
def test_wdhms_to_hhmmss(timestr, expected):
    assert wdhms_to_hhmmss(timestr) == expected


@pytest.mark.parametrize("timestr", ["1x", "h", "10"])
def test_wdhms_to_hhmmss_invalid(timestr):
    with pytest.raises(FDQError):
        wdhms_to_hhmmss(timestr)


def test_normalize_keys():
    assert normalize_keys({"Default-Resources": 1, "mem_mb": 2}) == {
        "default_resources": 1,
        "mem_mb": 2,
    }


def test_normalize_keys_duplicate_raises():
    with pytest.raises(FDQError, match="multiple times"):
        normalize_keys({"mem-mb": 1, "mem_mb": 2})


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("exactly10!", 10) == "exactly10!"
    assert truncate_text("much longer text", 8) == "much lo…"


def test_collect_posts_from_files_and_directories(tmp_path):
    (tmp_path / "blog" / "2024").mkdir(parents=True)
    first = tmp_path / "blog" / "first.md"
    second = tmp_path / "blog" / "2024" / "second.markdown"
    ignored = tmp_path / "blog" / "notes.txt"
    explicit = tmp_path / "draft.txt"
    for f in (first, second, ignored, explicit):
        f.write_text("")

    posts = collect_posts([tmp_path / "blog", explicit, first])

    assert posts == sorted([first, second, explicit])


def test_collect_posts_missing_path(tmp_path):
    with pytest.raises(FDQError, match="does not exist"):
        collect_posts([tmp_path / "missing"])


@pytest.mark.parametrize(
    "width, factor, min_width, max_width, expected",
    [
        (100, 2, None, None, 50),
        (100, 2, 60, None, 60),
        (100, 1, None, 80, 80),
    ],
)
def test_get_panel_width(width, factor, min_width, max_width, expected):
    console = MagicMock()
    console.size.width = width

    assert get_panel_width(console, factor, min_width, max_width) == expected


def test_yaml_loader_keeps_times_and_dates_as_strings():
    data = yaml.load(
        dedent(
            """
            walltime: 1:30:00
            quoted: "2:00:00"
            date: 2024-03-12
            ncpus: 8
            negative: -3
            ratio: 0.5
            enabled: true
            """
        ),
        Loader=load_yaml_loader(),
    )

    assert data == {
        "walltime": "1:30:00",
        "quoted": "2:00:00",
        "date": "2024-03-12",
        "ncpus": 8,
        "negative": -3,
        "ratio": 0.5,
        "enabled": True,
    }
