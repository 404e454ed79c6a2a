# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/patching/engine.py
"""
Apply PatchSpecs to a guest filesystem seen through a host mount prefix.

For each spec the engine:
  1. translates the guest path to the host path
  2. creates missing ancestor directories
  3. reads the current file (empty when missing)
  4. runs the transformation into memory
  5. replaces the destination via temp file + rename

The destination is never touched before the transformation has succeeded.
Callers must serialize apply() calls for one guest root; there is no locking.
"""
from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..core.exceptions import (
    DirectoryCreationError,
    PatchApplyError,
    PatchIOError,
    TransformationFailure,
    WriteError,
)
from ..core.file_ops import atomic_write, ensure_parent_dir
from ..core.logger import Log
from ..core.utils import U
from .patch import PatchSpec
from .paths import translate
from .transforms import run_transformation

# Mode for files the engine creates (temp files start out 0600).
NEW_FILE_MODE = 0o644


@dataclass
class PatchResult:
    path: str
    host_path: str
    ok: bool
    changed: bool = False
    created: bool = False
    error: Optional[PatchApplyError] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "path": self.path,
            "host_path": self.host_path,
            "ok": self.ok,
            "changed": self.changed,
            "created": self.created,
        }
        if self.error is not None:
            d["error"] = self.error.to_dict(include_cause=True)
        return d


@dataclass
class PatchReport:
    host_prefix: str
    results: List[PatchResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped and all(r.ok for r in self.results)

    @property
    def failed(self) -> List[PatchResult]:
        return [r for r in self.results if not r.ok]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host_prefix": self.host_prefix,
            "ok": self.ok,
            "applied": sum(1 for r in self.results if r.ok),
            "failed": len(self.failed),
            "skipped": list(self.skipped),
            "results": [r.to_dict() for r in self.results],
        }


class PatchEngine:
    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        *,
        dry_run: bool = False,
        backup: bool = False,
    ):
        """
        Args:
            logger: Logger instance (defaults to the `distropatch.engine` logger)
            dry_run: Run transformations but create/write nothing
            backup: Copy an existing destination aside before replacing it
        """
        self.logger = logger or logging.getLogger("distropatch.engine")
        self.dry_run = dry_run
        self.backup = backup

    def apply(self, spec: PatchSpec, host_prefix: Union[str, os.PathLike]) -> bool:
        """
        Apply one spec under `host_prefix`.

        Returns True on success. Every failure raises a PatchApplyError
        subclass (DirectoryCreationError, PatchIOError, TransformationFailure,
        WriteError) carrying `guest_path` and `host_path` in its context.
        """
        return self.apply_one(spec, host_prefix).ok

    def apply_one(self, spec: PatchSpec, host_prefix: Union[str, os.PathLike]) -> PatchResult:
        dest = Path(translate(host_prefix, spec.config_file_path))
        ctx = {"guest_path": spec.path, "host_path": str(dest)}
        log = Log.bind(self.logger, path=spec.path)

        Log.trace(self.logger, "patch %s -> %s", spec.path, dest)

        if not self.dry_run:
            self._ensure_parents(dest, ctx)

        original = self._read_original(dest, ctx)
        new = self._transform(spec, original, ctx)

        created = original is None
        changed = created or new != original

        if self.dry_run:
            log.info(
                "🧪 dry-run: would %s with %s (%s -> %s)",
                "create" if created else ("rewrite" if changed else "keep"),
                spec.transformation.describe(),
                U.human_bytes(len(original or b"")),
                U.human_bytes(len(new)),
            )
            return PatchResult(spec.path, str(dest), ok=True, changed=changed, created=created)

        if self.backup and original is not None and changed:
            self._backup(dest)

        self._write(dest, new, ctx)

        if created:
            log.info("📝 created (%s)", U.human_bytes(len(new)))
        elif changed:
            log.info("✏️  patched (%s -> %s)", U.human_bytes(len(original or b"")), U.human_bytes(len(new)))
        else:
            log.info("✅ unchanged")
        return PatchResult(spec.path, str(dest), ok=True, changed=changed, created=created)

    def apply_all(
        self,
        specs: Iterable[PatchSpec],
        host_prefix: Union[str, os.PathLike],
        *,
        keep_going: bool = False,
    ) -> PatchReport:
        """
        Apply specs in order. Stops at the first failure unless `keep_going`;
        specs not attempted are listed in `report.skipped`.
        """
        specs = list(specs)
        report = PatchReport(host_prefix=str(host_prefix))
        Log.step(self.logger, f"Applying {len(specs)} patch(es)", prefix=str(host_prefix), dry_run=self.dry_run)

        for i, spec in enumerate(specs):
            try:
                report.results.append(self.apply_one(spec, host_prefix))
            except PatchApplyError as e:
                Log.fail(self.logger, f"{spec.path}: {e.user_message(include_cause=True)}")
                report.results.append(
                    PatchResult(spec.path, str(e.context.get("host_path", "")), ok=False, error=e)
                )
                if not keep_going:
                    report.skipped = [s.path for s in specs[i + 1:]]
                    break

        if report.ok:
            Log.ok(self.logger, "All patches applied", count=len(report.results))
        else:
            Log.warn(
                self.logger,
                "Patching incomplete",
                failed=len(report.failed),
                skipped=len(report.skipped),
            )
        return report

    # ------------------------------------------------------------------
    # steps
    # ------------------------------------------------------------------

    def _ensure_parents(self, dest: Path, ctx: Dict[str, Any]) -> None:
        try:
            ensure_parent_dir(dest)
        except OSError as e:
            raise DirectoryCreationError(
                msg=f"Cannot create directory {dest.parent}: {e.strerror or e}",
                cause=e,
                context=dict(ctx),
            ) from e

    def _read_original(self, dest: Path, ctx: Dict[str, Any]) -> Optional[bytes]:
        try:
            return dest.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PatchIOError(
                msg=f"Cannot read {dest}: {e.strerror or e}",
                cause=e,
                context=dict(ctx),
            ) from e

    def _transform(self, spec: PatchSpec, original: Optional[bytes], ctx: Dict[str, Any]) -> bytes:
        t = spec.transformation
        try:
            ok, new = run_transformation(t, original or b"")
        except Exception as e:
            raise TransformationFailure(
                msg=f"Transformation {t.describe()} raised {type(e).__name__}: {e}",
                cause=e,
                context=dict(ctx, transformation=t.describe()),
            ) from e
        if not ok:
            raise TransformationFailure(
                msg=f"Transformation {t.describe()} reported failure",
                context=dict(ctx, transformation=t.describe()),
            )
        return new

    def _backup(self, dest: Path) -> None:
        stem = f"{dest.name}.backup.distropatch.{U.now_ts(precise=True)}"
        backup_path = dest.with_name(stem)
        n = 1
        while backup_path.exists():
            # same clock tick as an earlier backup
            backup_path = dest.with_name(f"{stem}.{n}")
            n += 1
        try:
            shutil.copy2(dest, backup_path)
            self.logger.debug("Backup: %s -> %s", dest, backup_path)
        except OSError as e:
            self.logger.warning("Backup failed for %s: %s", dest, e)

    def _write(self, dest: Path, data: bytes, ctx: Dict[str, Any]) -> None:
        try:
            mode = dest.stat().st_mode & 0o7777
        except FileNotFoundError:
            mode = NEW_FILE_MODE
        except OSError as e:
            raise WriteError(msg=f"Cannot stat {dest}: {e.strerror or e}", cause=e, context=dict(ctx)) from e

        try:
            with atomic_write(dest, chmod=mode) as tmp:
                tmp.write_bytes(data)
        except OSError as e:
            raise WriteError(
                msg=f"Cannot write {dest}: {e.strerror or e}",
                cause=e,
                context=dict(ctx, size=len(data)),
            ) from e
