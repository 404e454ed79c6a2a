# SPDX-License-Identifier: LGPL-3.0-or-later
# distropatch/core/exceptions.py
"""
Error types raised by distropatch.

Every error carries an exit code, a one-line message, an optional cause and
a context dict (guest_path, host_path, release, ...). Context keys that look
like credentials are hidden whenever the error is rendered.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

REDACTED = "***REDACTED***"

_SECRET_KEY = re.compile(r"pass|secret|token|api_?key|auth|cookie|private", re.IGNORECASE)


def _exit_code(value: Any) -> int:
    try:
        code = int(value)
    except (TypeError, ValueError):
        return 1
    return 1 if code < 0 else min(code, 255)


def _one_line(s: Optional[str], limit: int = 600) -> str:
    s = " ".join((s or "").split())
    return s if len(s) <= limit else s[: limit - 3] + "..."


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: REDACTED if _SECRET_KEY.search(str(k)) else _redact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact(v) for v in value]
    return value


@dataclass(eq=False)
class DistroPatchError(Exception):
    code: int = 1
    msg: str = "error"
    cause: Optional[BaseException] = None
    context: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        self.code = _exit_code(self.code)
        self.msg = _one_line(self.msg) or type(self).__name__
        self.context = dict(self.context or {})
        super().__init__(self.msg)

    def with_context(self, **ctx: Any) -> "DistroPatchError":
        self.context.update(ctx)
        return self

    def user_message(self, *, include_context: bool = False, include_cause: bool = False) -> str:
        out = self.msg
        if include_context and self.context:
            shown = ", ".join(
                f"{k}=<redacted>" if _SECRET_KEY.search(str(k)) else f"{k}={v!r}"
                for k, v in sorted(self.context.items(), key=lambda kv: str(kv[0]))
            )
            out += f" [{_one_line(shown)}]"
        if include_cause and self.cause is not None:
            out += f" (cause: {type(self.cause).__name__}: {_one_line(str(self.cause))})"
        return out

    def __str__(self) -> str:
        return self.msg

    def to_dict(self, *, include_cause: bool = False) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "type": type(self).__name__,
            "code": self.code,
            "message": self.msg,
            "context": _redact(self.context),
        }
        if include_cause and self.cause is not None:
            d["cause"] = {"type": type(self.cause).__name__, "message": _one_line(str(self.cause))}
        return d


class Fatal(DistroPatchError):
    """Aborts the run; main() exits with `code`."""


class ConfigError(Fatal):
    """Config file missing, unreadable, or describing an unknown patch."""


class InvalidPath(DistroPatchError):
    """A guest path is not an absolute POSIX path (or tries to leave the guest root)."""


class PatchApplyError(DistroPatchError):
    """
    Applying one PatchSpec failed.

    The subclass names the failing step; context always carries `guest_path`
    and `host_path`.
    """


class DirectoryCreationError(PatchApplyError):
    pass


class PatchIOError(PatchApplyError):
    """Existing destination content could not be read."""


class TransformationFailure(PatchApplyError):
    """The transformation returned False or raised. The destination was not touched."""


class WriteError(PatchApplyError):
    pass


def wrap_config(msg: str, exc: Optional[BaseException] = None, code: int = 2, **context: Any) -> ConfigError:
    return ConfigError(code=code, msg=msg, cause=exc, context=context)


def format_exception_for_cli(e: BaseException, *, verbose: int = 0) -> str:
    """Message only; -v adds context, -vv adds the cause."""
    if isinstance(e, DistroPatchError):
        return e.user_message(include_context=verbose >= 1, include_cause=verbose >= 2)
    text = _one_line(str(e))
    if verbose >= 2:
        return f"{type(e).__name__}: {text}"
    return text or type(e).__name__
