# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from unittest.mock import MagicMock, patch

import pytest

from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError
from fdq_lib.core.error_handlers import handle_general_fdq_error


def test_handle_general_fdq_error_logs_and_continues_if_some_items_succeeded():
    metadata = MagicMock()
    metadata.items = ["a", "b"]
    metadata.encountered_errors = {0: FDQError("bad")}

    with patch("fdq_lib.core.error_handlers.logger") as mock_logger:
        handle_general_fdq_error(FDQError("bad"), metadata)

    mock_logger.error.assert_called_once()


def test_handle_general_fdq_error_exits_if_all_items_failed():
    metadata = MagicMock()
    metadata.items = ["a"]
    metadata.encountered_errors = {0: FDQError("bad")}

    with (
        patch("fdq_lib.core.error_handlers.logger"),
        pytest.raises(SystemExit) as exc_info,
    ):
        handle_general_fdq_error(FDQError("bad"), metadata)

    assert exc_info.value.code == CFG.exit_codes.default
