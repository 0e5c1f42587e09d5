"""Testes de observabilidade: correlation id, fallback log, latência."""

from __future__ import annotations

import json
import logging

from pythonjsonlogger.json import JsonFormatter

from chatflow.observability.context import correlation_scope, get_correlation_id
from chatflow.observability.logging import CorrelationIdFilter, log_fallback, short_id
from chatflow.observability.timing import timed


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("chatflow.test", logging.INFO, __file__, 1, "msg", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationIdFilter:
    def test_injects_contextvar_and_service(self):
        record = _record()

        with correlation_scope("chat-123"):
            CorrelationIdFilter("chatflow").filter(record)

        assert record.correlation_id == "chat-123"  # type: ignore[attr-defined]
        assert record.service == "chatflow"  # type: ignore[attr-defined]

    def test_explicit_correlation_id_is_kept(self):
        record = _record(correlation_id="explicit")

        with correlation_scope("chat-123"):
            CorrelationIdFilter("chatflow").filter(record)

        assert record.correlation_id == "explicit"  # type: ignore[attr-defined]

    def test_json_output_contains_fields(self):
        formatter = JsonFormatter("%(levelname)s %(message)s %(correlation_id)s %(service)s")
        record = _record()
        CorrelationIdFilter("chatflow").filter(record)

        payload = json.loads(formatter.format(record))

        assert payload["service"] == "chatflow"
        assert payload["correlation_id"] == ""


def test_correlation_scope_restores_previous():
    with correlation_scope("outer"):
        with correlation_scope("inner"):
            assert get_correlation_id() == "inner"
        assert get_correlation_id() == "outer"
    assert get_correlation_id() == ""


def test_short_id():
    assert short_id("0123456789abcdef") == "01234567..."
    assert short_id("short") == "short"
    assert short_id(None) is None


def test_log_fallback_fields(caplog):
    logger = logging.getLogger("chatflow.test")

    with caplog.at_level(logging.INFO):
        log_fallback(logger, "navigation_restore", reason="stale_node", elapsed_ms=1.5)

    record = caplog.records[-1]
    assert record.fallback_used is True  # type: ignore[attr-defined]
    assert record.component == "navigation_restore"  # type: ignore[attr-defined]
    assert record.reason == "stale_node"  # type: ignore[attr-defined]
    assert record.elapsed_ms == 1.5  # type: ignore[attr-defined]


def test_timed_logs_latency(caplog):
    with caplog.at_level(logging.DEBUG, logger="chatflow.observability.timing"):
        with timed("flow_engine.initialize", chat_id="abc"):
            pass

    record = next(r for r in caplog.records if r.getMessage() == "component_latency")
    assert record.component == "flow_engine.initialize"  # type: ignore[attr-defined]
    assert record.elapsed_ms >= 0  # type: ignore[attr-defined]
