# SPDX-License-Identifier: LGPL-3.0-or-later
"""Logger setup, formatters and context binding."""
from __future__ import annotations

import json
import logging

import pytest

from distropatch.core.logger import (
    TRACE,
    ContextLoggerAdapter,
    EmojiFormatter,
    JsonFormatter,
    Log,
    LogStyle,
)


def _record(msg="hello %s", args=("world",), level=logging.INFO, ctx=None):
    rec = logging.LogRecord("distropatch.test", level, __file__, 10, msg, args, None)
    if ctx is not None:
        rec.ctx = ctx
    return rec


@pytest.mark.unit
class TestLevels:
    @pytest.mark.parametrize(
        "verbose,quiet,expected",
        [
            (0, 0, logging.INFO),
            (1, 0, logging.INFO),
            (2, 0, logging.DEBUG),
            (3, 0, TRACE),
            (0, 1, logging.WARNING),
            (3, 2, logging.ERROR),
        ],
    )
    def test_level_from_flags(self, verbose, quiet, expected):
        assert Log._level_from_flags(verbose, quiet) == expected

    def test_trace_level_registered(self):
        assert logging.getLevelName(TRACE) == "TRACE"


@pytest.mark.unit
class TestFormatters:
    def test_emoji_formatter_plain(self):
        fmt = EmojiFormatter(LogStyle(color=False, unicode=False))
        line = fmt.format(_record(ctx={"path": "/etc/fstab"}))

        assert "INFO" in line
        assert "hello world" in line
        assert line.endswith("path=/etc/fstab")

    def test_emoji_formatter_indents_exceptions(self):
        fmt = EmojiFormatter(LogStyle(color=False))
        try:
            raise ValueError("bad")
        except ValueError:
            import sys

            rec = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        out = fmt.format(rec)
        assert "\n  Traceback" in out
        assert "ValueError: bad" in out

    def test_json_formatter(self):
        out = json.loads(JsonFormatter().format(_record(ctx={"release": "Ubuntu-22.04"})))

        assert out["level"] == "INFO"
        assert out["msg"] == "hello world"
        assert out["ctx"] == {"release": "Ubuntu-22.04"}
        assert "ts" in out and "lineno" in out


@pytest.mark.unit
class TestContextBinding:
    def test_bind_merges_context(self):
        base = logging.getLogger("tests.bind")
        adapter = Log.bind(base, release="Ubuntu-22.04").bind(path="/etc/fstab")

        assert isinstance(adapter, ContextLoggerAdapter)
        _msg, kwargs = adapter.process("x", {"extra": {"ctx": {"step": "write"}}})
        assert kwargs["extra"]["ctx"] == {"release": "Ubuntu-22.04", "path": "/etc/fstab", "step": "write"}

    def test_bind_on_adapter_keeps_context(self):
        adapter = Log.bind(Log.bind(logging.getLogger("tests.bind"), a=1), b=2)
        assert adapter.extra["ctx"] == {"a": 1, "b": 2}


@pytest.mark.unit
class TestSetup:
    def test_setup_replaces_handlers(self, tmp_path):
        log_file = tmp_path / "logs" / "distropatch.log"
        logger = Log.setup(0, str(log_file), logger_name="tests.setup")
        logger = Log.setup(0, str(log_file), logger_name="tests.setup")

        assert len(logger.handlers) == 2
        assert logger.propagate is False

        logger.info("patched %s", "/etc/fstab")
        for h in logger.handlers:
            h.flush()
        assert "patched /etc/fstab" in log_file.read_text(encoding="utf-8")

        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()

    def test_json_logs_to_file(self, tmp_path):
        log_file = tmp_path / "log.ndjson"
        logger = Log.setup(0, str(log_file), logger_name="tests.setup.json", json_logs=True, quiet=1)
        logger.warning("careful")
        for h in list(logger.handlers):
            h.flush()
            logger.removeHandler(h)
            h.close()

        rec = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
        assert rec["level"] == "WARNING"
        assert rec["msg"] == "careful"


@pytest.mark.unit
class TestStatusLines:
    def test_banner_is_centered(self, caplog):
        with caplog.at_level(logging.INFO, logger="tests.banner"):
            Log.banner(logging.getLogger("tests.banner"), "distropatch 0.1.0", width=40)
        line = caplog.records[-1].getMessage()
        assert len(line) == 40
        assert " distropatch 0.1.0 " in line

    def test_trace_is_skipped_below_level(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="tests.trace"):
            Log.trace(logging.getLogger("tests.trace"), "hidden %s", "x")
        assert not caplog.records

    def test_status_helpers_attach_context(self, caplog):
        with caplog.at_level(logging.INFO, logger="tests.status"):
            Log.ok(logging.getLogger("tests.status"), "done", count=2)
        assert caplog.records[-1].ctx == {"count": 2}
        assert "done" in caplog.records[-1].getMessage()
