# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/__main__.py
from __future__ import annotations

import argparse
import json
import logging
import traceback
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from rich.console import Console
from rich.table import Table

from . import __version__
from .cli.argument_parser import parse_args_with_config
from .config.config_loader import registry_from_config
from .core.exceptions import Fatal, format_exception_for_cli
from .core.logger import Log
from .patching.engine import PatchEngine
from .patching.registry import PatchRegistry, default_registry

EXIT_OK = 0
EXIT_PATCH_FAILED = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def build_registry(args: argparse.Namespace, conf: Dict[str, Any]) -> PatchRegistry:
    extra = registry_from_config(conf)
    if getattr(args, "no_builtin", False):
        return extra
    return default_registry().merged(extra)


def print_patch_table(registry: PatchRegistry, release: Optional[str], console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title=f"Effective patches (release={release or '-'})")
    table.add_column("#", justify="right")
    table.add_column("Guest path")
    table.add_column("Transformation")
    table.add_column("Scope")
    conflicts = set(registry.conflicts(release))
    for i, spec in enumerate(registry.effective_patches(release), 1):
        scope = "all releases" if spec in registry.release_agnostic else str(release)
        path = f"{spec.path} (shared)" if spec.path in conflicts else spec.path
        table.add_row(str(i), path, spec.transformation.describe(), scope)
    console.print(table)


def run(args: argparse.Namespace, conf: Dict[str, Any], logger: logging.Logger) -> int:
    registry = build_registry(args, conf)
    release = args.release

    if args.list_patches:
        print_patch_table(registry, release)
        return EXIT_OK

    for path in registry.conflicts(release):
        Log.warn(logger, "Several patches own one file; the last one registered decides its content", path=path)

    Log.banner(logger, f"distropatch {__version__}: release {release or '-'}")
    engine = PatchEngine(logger, dry_run=args.dry_run, backup=args.backup)
    report = engine.apply_all(registry.effective_patches(release), args.root, keep_going=args.keep_going)

    if args.json_report:
        out = Path(args.json_report).expanduser()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(report.to_dict(), indent=2, default=str) + "\n", encoding="utf-8")
        logger.debug("Report written: %s", out)

    return EXIT_OK if report.ok else EXIT_PATCH_FAILED


def main(argv: Optional[Sequence[str]] = None) -> None:
    try:
        args, conf, logger = parse_args_with_config(argv)
    except Fatal as e:
        # The config layer already logged it.
        raise SystemExit(e.code or EXIT_USAGE)
    except KeyboardInterrupt:
        raise SystemExit(EXIT_INTERRUPTED)

    try:
        rc = run(args, conf, logger)
    except Fatal as e:
        logger.error(format_exception_for_cli(e, verbose=args.verbose))
        rc = e.code or EXIT_USAGE
    except KeyboardInterrupt:
        logger.warning("Interrupted by user (Ctrl+C).")
        rc = EXIT_INTERRUPTED
    except Exception as e:
        # Unexpected exceptions must not fail silently.
        logger.error(f"💥 UNHANDLED {type(e).__name__}: {e}")
        logger.debug(traceback.format_exc())
        rc = EXIT_PATCH_FAILED

    raise SystemExit(rc)


if __name__ == "__main__":
    main()
