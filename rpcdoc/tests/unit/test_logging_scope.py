"""Unit tests for the structured logging scope."""
from __future__ import annotations

import logging

import pytest

from rpcdoc.utils.logging import current_scope, discovery_scope, increment_counter


def test_discovery_scope_provides_context():
    logger = logging.getLogger("test.logger")
    with discovery_scope("unit_test", logger=logger, extra={"tool": "unit"}) as ctx:
        assert current_scope() is ctx
        increment_counter("example")
        increment_counter("example", 2)
        assert ctx.counters["example"] == 3
        assert ctx.extra()["tool"] == "unit"
    assert current_scope() is None


def test_increment_without_scope_is_ignored():
    assert current_scope() is None
    increment_counter("orphan")


def test_scope_logs_start_and_finish(caplog):
    logger = logging.getLogger("test.scope")
    with caplog.at_level(logging.INFO, logger="test.scope"):
        with discovery_scope("run", logger=logger) as ctx:
            ctx.increment("methods")
    messages = [record.getMessage() for record in caplog.records]
    assert messages == ["run.start", "run.finish"]
    finish = caplog.records[-1]
    assert finish.counters == {"methods": 1}
    assert finish.duration_s >= 0
    assert finish.scope_id == caplog.records[0].scope_id


def test_scope_logs_errors_and_reraises(caplog):
    logger = logging.getLogger("test.failing")
    with caplog.at_level(logging.ERROR, logger="test.failing"):
        with pytest.raises(RuntimeError):
            with discovery_scope("failing", logger=logger):
                raise RuntimeError("boom")
    assert [record.getMessage() for record in caplog.records] == ["failing.error"]
    assert current_scope() is None


def test_nested_scopes_link_to_their_parent(caplog):
    logger = logging.getLogger("test.nested")
    with caplog.at_level(logging.INFO, logger="test.nested"):
        with discovery_scope("outer", logger=logger) as outer:
            with discovery_scope("inner", logger=logger) as inner:
                assert current_scope() is inner
                assert increment_counter("methods") == 1
            assert current_scope() is outer
    assert inner.parent is outer
    assert outer.counters == {}
    inner_start = next(r for r in caplog.records if r.getMessage() == "inner.start")
    assert inner_start.parent_scope_id == outer.scope_id


def test_increment_counter_returns_none_outside_a_scope():
    assert increment_counter("orphan") is None
