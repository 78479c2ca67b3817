"""
Unit tests for core.logger module.

Tests:
- format_kv_pairs() quoting, escaping, truncation
- StructuredFormatter output for structured and plain records
- Logger level dispatch, bind(), and JSON mode
"""

import json
import logging

import pytest

from nostrpipe.core.logger import Logger, StructuredFormatter, format_kv_pairs


class TestFormatKvPairs:
    """format_kv_pairs() function."""

    def test_empty(self):
        assert format_kv_pairs({}) == ""

    def test_simple_values(self):
        assert format_kv_pairs({"stage": "query", "events": 3}) == " stage=query events=3"

    def test_quotes_values_with_spaces(self):
        assert format_kv_pairs({"error": "relay down"}) == ' error="relay down"'

    def test_escapes_quotes(self):
        assert format_kv_pairs({"msg": 'say "hi"'}) == ' msg="say \\"hi\\""'

    def test_empty_value_is_quoted(self):
        assert format_kv_pairs({"title": ""}) == ' title=""'

    def test_truncation(self):
        result = format_kv_pairs({"v": "x" * 20}, max_value_length=5)
        assert result == ' v="xxxxx...<truncated 15 chars>"'

    def test_no_truncation_when_disabled(self):
        assert format_kv_pairs({"v": "x" * 20}, max_value_length=None) == " v=" + "x" * 20

    def test_custom_prefix(self):
        assert format_kv_pairs({"a": 1}, prefix="") == "a=1"


class TestStructuredFormatter:
    """StructuredFormatter renders level, name, message, and fields."""

    def _record(self, **extra):
        record = logging.LogRecord("pipeline", logging.INFO, __file__, 1, "stage_done", (), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_plain_record(self):
        assert StructuredFormatter().format(self._record()) == "info pipeline stage_done"

    def test_structured_fields(self):
        record = self._record(structured_kv={"stage": "tags", "distinct": 2})
        assert StructuredFormatter().format(record) == (
            "info pipeline stage_done stage=tags distinct=2"
        )


class TestLogger:
    """Logger dispatch and field binding."""

    def test_name(self):
        assert Logger("pipeline").name == "pipeline"

    @pytest.mark.parametrize("level", ["debug", "info", "warning", "error", "critical"])
    def test_levels(self, caplog, level):
        logger = Logger("test.levels")
        with caplog.at_level(logging.DEBUG, logger="test.levels"):
            getattr(logger, level)("something_happened", count=1)
        assert caplog.records[-1].levelname.lower() == level
        assert caplog.records[-1].structured_kv == {"count": 1}

    def test_bind_adds_fields(self, caplog):
        logger = Logger("test.bind").bind(stage="query")
        with caplog.at_level(logging.INFO, logger="test.bind"):
            logger.info("stage_completed", events=3)
        assert caplog.records[-1].structured_kv == {"stage": "query", "events": 3}

    def test_bind_does_not_modify_parent(self, caplog):
        parent = Logger("test.parent")
        parent.bind(stage="query")
        with caplog.at_level(logging.INFO, logger="test.parent"):
            parent.info("plain")
        assert not hasattr(caplog.records[-1], "structured_kv")

    def test_disabled_level_is_skipped(self, caplog):
        logger = Logger("test.disabled")
        with caplog.at_level(logging.WARNING, logger="test.disabled"):
            logger.debug("hidden")
        assert not caplog.records

    def test_truncates_values(self, caplog):
        logger = Logger("test.truncate", max_value_length=4)
        with caplog.at_level(logging.INFO, logger="test.truncate"):
            logger.info("long", value="abcdefgh")
        assert caplog.records[-1].structured_kv["value"] == "abcd...<truncated 4 chars>"

    def test_json_output(self, caplog):
        logger = Logger("test.json", json_output=True)
        with caplog.at_level(logging.INFO, logger="test.json"):
            logger.info("stage_completed", stage="tags")
        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["message"] == "stage_completed"
        assert payload["level"] == "info"
        assert payload["service"] == "test.json"
        assert payload["stage"] == "tags"

    def test_exception_includes_traceback(self, caplog):
        logger = Logger("test.exc")
        with caplog.at_level(logging.ERROR, logger="test.exc"):
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                logger.exception("failed")
        assert caplog.records[-1].exc_info is not None
