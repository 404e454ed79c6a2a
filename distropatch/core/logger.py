# SPDX-License-Identifier: LGPL-3.0-or-later
# distropatch/core/logger.py
"""
Logging for distropatch.

Library modules only ever call `logging.getLogger("distropatch.<area>")`;
the CLI calls `Log.setup()` once to attach handlers to the "distropatch"
logger. Key/value context travels on records as `record.ctx` and is
rendered by both formatters.
"""
from __future__ import annotations

import datetime as _dt
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from termcolor import colored as _colored

TRACE = 5
if logging.getLevelName(TRACE) != "TRACE":
    logging.addLevelName(TRACE, "TRACE")

_LEVELS: Dict[str, Tuple[str, str]] = {
    # levelname: (emoji, colour)
    "TRACE": ("🧬", "cyan"),
    "DEBUG": ("🔍", "blue"),
    "INFO": ("✅", "green"),
    "WARNING": ("⚠️", "yellow"),
    "ERROR": ("💥", "red"),
    "CRITICAL": ("🧨", "red"),
}

Ctx = Mapping[str, Any]


def _stderr_is_tty() -> bool:
    try:
        return bool(sys.stderr.isatty())
    except (AttributeError, ValueError):
        return False


def _stderr_takes_emoji() -> bool:
    enc = getattr(sys.stderr, "encoding", None) or "utf-8"
    try:
        "🧬✅".encode(enc)
    except (UnicodeEncodeError, LookupError):
        return False
    return True


def c(
    text: str,
    color: Optional[str] = None,
    attrs: Optional[List[str]] = None,
    *,
    enable: bool = True,
) -> str:
    """Colour `text` with termcolor; returns it untouched when disabled."""
    if not enable or not color:
        return text
    return _colored(text, color=color, attrs=attrs or [])


def _short(v: Any, limit: int = 240) -> str:
    s = str(v)
    return s if len(s) <= limit else s[: limit - 1] + "…"


def _render_ctx(ctx: Optional[Ctx]) -> str:
    if not ctx:
        return ""
    return " " + " ".join(f"{k}={_short(v)}" for k, v in sorted(ctx.items(), key=lambda kv: str(kv[0])))


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Adapter whose context is merged into every record's `ctx`.

      log = Log.bind(logger, path="/etc/fstab")
      log.info("patched")                       # ... patched path=/etc/fstab
      log.bind(release="Ubuntu-22.04").debug("x")
    """

    def __init__(self, logger: logging.Logger, ctx: Optional[Ctx] = None):
        super().__init__(logger, {"ctx": dict(ctx or {})})

    @property
    def ctx(self) -> Dict[str, Any]:
        return self.extra["ctx"]

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["ctx"] = {**self.ctx, **(extra.get("ctx") or {})}
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **ctx: Any) -> "ContextLoggerAdapter":
        return ContextLoggerAdapter(self.logger, {**self.ctx, **ctx})


@dataclass(frozen=True)
class LogStyle:
    color: bool = True
    unicode: bool = True
    show_ms: bool = False
    show_src: bool = False  # module:line
    show_logger: bool = False


class EmojiFormatter(logging.Formatter):
    """`12:00:01 ✅ INFO     [distropatch.engine] patched path=/etc/fstab`"""

    def __init__(self, style: LogStyle):
        super().__init__()
        self.style = style

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        t = _dt.datetime.fromtimestamp(record.created)
        return t.strftime("%H:%M:%S.%f")[:-3] if self.style.show_ms else t.strftime("%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        emoji, colour = _LEVELS.get(record.levelname, ("•", None))
        if not self.style.unicode:
            emoji = "·"
        colourize = self.style.color and _stderr_is_tty()

        where = []
        if self.style.show_logger:
            where.append(record.name)
        if self.style.show_src:
            where.append(f"{record.module}:{record.lineno}")

        msg = record.getMessage()
        if record.levelno >= logging.WARNING:
            msg = c(msg, colour, ["bold"], enable=colourize)

        line = "{} {} {}{} {}{}".format(
            self.formatTime(record),
            emoji,
            c(f"{record.levelname:<8}", colour, enable=colourize),
            f" [{' '.join(where)}]" if where else "",
            msg,
            _render_ctx(getattr(record, "ctx", None)),
        )

        tail = [t for t in (self.formatException(record.exc_info) if record.exc_info else "", record.stack_info) if t]
        if tail:
            block = "\n".join("  " + ln for ln in "\n".join(tail).splitlines())
            line += "\n" + (c(block, "red", enable=colourize) if record.exc_info else block)
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per line (ts, level, logger, msg, module, lineno, ctx, exc)."""

    def format(self, record: logging.LogRecord) -> str:
        obj: Dict[str, Any] = {
            "ts": _dt.datetime.fromtimestamp(record.created, tz=_dt.timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "lineno": record.lineno,
        }
        ctx = getattr(record, "ctx", None)
        if ctx:
            obj["ctx"] = {str(k): _short(v) for k, v in ctx.items()}
        if record.exc_info:
            obj["exc"] = self.formatException(record.exc_info)
        return json.dumps(obj, ensure_ascii=False)


AnyLogger = Union[logging.Logger, logging.LoggerAdapter]


class Log:
    """Facade used across the package: setup, context binding, and status lines."""

    @staticmethod
    def _level_from_flags(verbose: int, quiet: int) -> int:
        """-q warnings, -qq errors, -vv debug, -vvv trace; quiet wins over verbose."""
        if quiet:
            return logging.ERROR if quiet >= 2 else logging.WARNING
        if verbose >= 3:
            return TRACE
        return logging.DEBUG if verbose >= 2 else logging.INFO

    @staticmethod
    def bind(logger: AnyLogger, **ctx: Any) -> ContextLoggerAdapter:
        if isinstance(logger, ContextLoggerAdapter):
            return logger.bind(**ctx)
        if isinstance(logger, logging.LoggerAdapter):
            logger = logger.logger
        return ContextLoggerAdapter(logger, ctx)

    @staticmethod
    def _emit(logger: AnyLogger, method: str, icon: str, msg: str, ctx: Dict[str, Any]) -> None:
        getattr(logger, method)("%s %s", icon, msg, extra={"ctx": ctx} if ctx else None)

    @staticmethod
    def banner(logger: AnyLogger, title: str, *, char: str = "─", width: int = 72) -> None:
        logger.info(f" {title.strip()} ".center(width, char))

    @staticmethod
    def step(logger: AnyLogger, msg: str, **ctx: Any) -> None:
        Log._emit(logger, "info", "➡️ ", msg, ctx)

    @staticmethod
    def ok(logger: AnyLogger, msg: str, **ctx: Any) -> None:
        Log._emit(logger, "info", "✅", msg, ctx)

    @staticmethod
    def warn(logger: AnyLogger, msg: str, **ctx: Any) -> None:
        Log._emit(logger, "warning", "⚠️ ", msg, ctx)

    @staticmethod
    def fail(logger: AnyLogger, msg: str, **ctx: Any) -> None:
        Log._emit(logger, "error", "💥", msg, ctx)

    @staticmethod
    def trace(logger: AnyLogger, msg: str, *args: Any, **ctx: Any) -> None:
        if logger.isEnabledFor(TRACE):
            logger.log(TRACE, msg, *args, extra={"ctx": ctx} if ctx else None)

    @staticmethod
    def setup(
        verbose: int = 0,
        log_file: Optional[str] = None,
        *,
        quiet: int = 0,
        color: bool = True,
        json_logs: bool = False,
        logger_name: str = "distropatch",
    ) -> logging.Logger:
        """
        Attach handlers to `logger_name` and return it.

        stderr gets emoji lines (or NDJSON with json_logs). A log file, when
        given, gets uncoloured lines with timestamps in ms and source
        location. Calling setup() again replaces previously installed
        handlers.
        """
        level = Log._level_from_flags(verbose, quiet)
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = False

        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()

        unicode = _stderr_takes_emoji()
        handlers: List[Tuple[logging.Handler, logging.Formatter]] = [
            (
                logging.StreamHandler(sys.stderr),
                JsonFormatter()
                if json_logs
                else EmojiFormatter(LogStyle(color=color, unicode=unicode, show_ms=verbose >= 3,
                                             show_src=verbose >= 3, show_logger=verbose >= 2)),
            )
        ]
        if log_file:
            fp = Path(log_file).expanduser().resolve()
            fp.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                (
                    logging.FileHandler(fp, encoding="utf-8"),
                    JsonFormatter()
                    if json_logs
                    else EmojiFormatter(LogStyle(color=False, unicode=unicode, show_ms=True,
                                                 show_src=True, show_logger=True)),
                )
            )

        for handler, fmt in handlers:
            handler.setLevel(level)
            handler.setFormatter(fmt)
            logger.addHandler(handler)

        logger.debug("Logging ready (level=%s, file=%s)", logging.getLevelName(level), log_file or "-")
        Log.trace(logger, "TRACE enabled")
        return logger
