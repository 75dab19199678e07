from __future__ import annotations

import json
import logging

import pytest

from inventory_grid.logger import get_logger, log_action


def test_log_action_writes_json(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("inventory_grid.test")
    with caplog.at_level(logging.INFO, logger="inventory_grid.test"):
        log_action(logger, module="listing", action="fetch.list", trace_id="t-1", outcome="success", page=2)
    record = json.loads(caplog.records[-1].getMessage())
    assert record["module"] == "listing"
    assert record["action"] == "fetch.list"
    assert record["trace_id"] == "t-1"
    assert record["outcome"] == "success"
    assert record["page"] == 2
    assert record["level"] == "INFO"


def test_log_action_rejects_sensitive_keys() -> None:
    logger = get_logger("inventory_grid.test")
    with pytest.raises(ValueError, match="Authorization"):
        log_action(logger, module="http", action="x", trace_id=None, outcome="error", Authorization="Bearer x")


def test_get_logger_installs_single_handler() -> None:
    first = get_logger("inventory_grid.single")
    second = get_logger("inventory_grid.single")
    assert first is second
    assert len(second.handlers) == 1
