# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import os
import signal
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError, FDQRunError
from fdq_lib.properties.redirection import Redirection
from fdq_lib.run.runner import Runner

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="requires POSIX descriptor semantics"
)

BOTH_STREAMS = ["sh", "-c", "echo out; echo err >&2"]


def _runner(command: list[str], redirections: str, cwd: Path | None = None) -> Runner:
    return Runner(command, Redirection.parseMany(redirections), cwd=cwd)


def test_runner_requires_command():
    with pytest.raises(FDQError, match="No command"):
        Runner([], [])


def test_runner_file_then_duplicate_captures_both_streams(tmp_path):
    out = tmp_path / "out.txt"

    assert _runner(BOTH_STREAMS, f">{out} 2>&1").run() == 0
    assert out.read_text() == "out\nerr\n"


def test_runner_duplicate_then_file_captures_only_stdout(tmp_path, capfd):
    out = tmp_path / "out.txt"

    assert _runner(BOTH_STREAMS, f"2>&1 >{out}").run() == 0
    assert out.read_text() == "out\n"

    # stderr went to where stdout pointed before the file was opened
    captured = capfd.readouterr()
    assert "err" in captured.out


def test_runner_both_operator(tmp_path):
    out = tmp_path / "all.txt"

    assert _runner(BOTH_STREAMS, f"&>{out}").run() == 0
    assert out.read_text() == "out\nerr\n"


def test_runner_append_keeps_existing_content(tmp_path):
    out = tmp_path / "log.txt"
    out.write_text("before\n")

    _runner(["echo", "after"], f">>{out}").run()

    assert out.read_text() == "before\nafter\n"


def test_runner_read_redirection(tmp_path):
    source = tmp_path / "in.txt"
    source.write_text("from file\n")
    out = tmp_path / "out.txt"

    assert _runner(["cat"], f"<{source} >{out}").run() == 0
    assert out.read_text() == "from file\n"


def test_runner_relative_targets_use_cwd(tmp_path):
    assert _runner(["echo", "here"], ">relative.txt", cwd=tmp_path).run() == 0
    assert (tmp_path / "relative.txt").read_text() == "here\n"


def test_runner_closed_descriptor_is_not_available_to_child(tmp_path):
    command = ["sh", "-c", "echo out >&3"]

    assert _runner(command, f"3>{tmp_path / 'fd3.txt'}").run() == 0
    assert _runner(command, f"3>{tmp_path / 'fd3.txt'} 3>&-").run() != 0


def test_runner_does_not_modify_parent_descriptors(tmp_path):
    before = os.fstat(1)
    _runner(["true"], f">{tmp_path / 'out.txt'} 2>&1").run()
    after = os.fstat(1)

    assert (before.st_dev, before.st_ino) == (after.st_dev, after.st_ino)


def test_runner_returns_exit_code():
    assert _runner(["sh", "-c", "exit 3"], "").run() == 3


def test_runner_signal_exit_code():
    assert _runner(["sh", "-c", "kill -TERM $$"], "").run() == 128 + signal.SIGTERM


def test_runner_missing_command_raises_run_error():
    with pytest.raises(FDQRunError, match="Could not execute") as exc_info:
        _runner(["surely-not-an-existing-command-fdq"], "").run()

    assert exc_info.value.exit_code == CFG.exit_codes.run_failed


def test_runner_missing_read_target_raises(tmp_path):
    with pytest.raises(FDQError, match="No such file"):
        _runner(["cat"], f"<{tmp_path / 'missing.txt'}").run()


def test_runner_missing_directory_raises(tmp_path):
    with pytest.raises(FDQError, match="does not exist"):
        _runner(["true"], f">{tmp_path / 'missing' / 'out.txt'}").run()


def test_runner_duplicate_of_closed_descriptor_raises():
    with pytest.raises(FDQError, match="Bad file descriptor"):
        _runner(["true"], "2>&150").run()


def test_runner_explain_includes_inherited_descriptors(tmp_path):
    fd = os.open(tmp_path / "inherited.txt", os.O_WRONLY | os.O_CREAT)
    try:
        explanation = _runner(["true"], f"1>&{fd}").explain()
    finally:
        os.close(fd)

    assert explanation.final[1] == explanation.initial[fd]
    assert explanation.initial[fd].stream == f"descriptor {fd}"


def test_runner_child_can_write_to_inherited_descriptor(tmp_path):
    target = tmp_path / "inherited.txt"
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC)
    try:
        assert _runner(["echo", "through fd"], f">&{fd}").run() == 0
    finally:
        os.close(fd)

    assert target.read_text() == "through fd\n"


def test_runner_sigterm_handler_terminates_child_and_exits():
    runner = Runner(["sleep", "10"], [])
    process = MagicMock()
    process.poll.return_value = None
    runner._process = process

    with patch("fdq_lib.run.runner.logger"), pytest.raises(SystemExit) as exc_info:
        runner._handleSigterm(signal.SIGTERM, None)

    process.terminate.assert_called_once()
    process.wait.assert_called_once()
    assert exc_info.value.code == 143


def test_runner_restores_sigterm_handler():
    previous = signal.getsignal(signal.SIGTERM)
    _runner(["true"], "").run()

    assert signal.getsignal(signal.SIGTERM) == previous


@pytest.mark.parametrize("slot", [3, 4, 5, 6, 7, 8, 9])
def test_runner_missing_command_reported_with_high_slot_redirection(tmp_path, slot):
    with pytest.raises(FDQRunError, match="Could not execute"):
        _runner(
            ["surely-not-an-existing-command-fdq"], f"{slot}>{tmp_path / 'out.txt'}"
        ).run()


def test_runner_non_executable_path_raises_run_error(tmp_path):
    script = tmp_path / "script.sh"
    script.write_text("#!/bin/sh\necho hi\n")

    with pytest.raises(FDQRunError, match="Could not execute"):
        Runner(["./script.sh"], [], cwd=tmp_path).run()

    script.chmod(0o755)
    assert Runner(["./script.sh"], [], cwd=tmp_path).run() == 0
