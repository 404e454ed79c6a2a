# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/core/utils.py
from __future__ import annotations

import datetime as _dt
import json
from typing import Any, Optional


class U:
    @staticmethod
    def now_ts(precise: bool = False) -> str:
        """Local timestamp for file names; `precise` adds microseconds."""
        return _dt.datetime.now().strftime("%Y%m%d-%H%M%S-%f" if precise else "%Y%m%d-%H%M%S")

    @staticmethod
    def json_dump(obj: Any) -> str:
        try:
            return json.dumps(obj, indent=2, sort_keys=True, default=str)
        except Exception:
            return repr(obj)

    @staticmethod
    def human_bytes(n: Optional[int]) -> str:
        if n is None:
            return "unknown"
        x = float(n)
        for unit in ["B", "KiB", "MiB", "GiB", "TiB", "PiB"]:
            if x < 1024 or unit == "PiB":
                return f"{x:.2f} {unit}" if unit != "B" else f"{int(x)} {unit}"
            x /= 1024
        return f"{n} B"

    @staticmethod
    def to_bytes(x: Any) -> bytes:
        """Config payloads arrive as str (YAML) or bytes (code); files are always bytes."""
        if isinstance(x, bytes):
            return x
        if isinstance(x, (bytearray, memoryview)):
            return bytes(x)
        if x is None:
            return b""
        return str(x).encode("utf-8")

    @staticmethod
    def to_text(x: Any) -> str:
        if isinstance(x, (bytes, bytearray)):
            return bytes(x).decode("utf-8", errors="replace")
        return "" if x is None else str(x)
