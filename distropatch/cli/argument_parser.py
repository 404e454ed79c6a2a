# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/cli/argument_parser.py
from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from ..config.config_loader import Config
from ..core.logger import Log, c
from .help_texts import YAML_EXAMPLE


class HelpFormatter(argparse.RawDescriptionHelpFormatter, argparse.ArgumentDefaultsHelpFormatter):
    """Combines raw description formatting with default value display in help."""


def _add_global_config_logging(p: argparse.ArgumentParser) -> None:
    from .. import __version__

    p.add_argument(
        "--config",
        action="append",
        default=[],
        help="YAML/JSON config file or directory (repeatable; later overrides earlier).",
    )
    p.add_argument("--version", action="version", version=__version__)
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -vv debug, -vvv trace")
    p.add_argument("-q", "--quiet", action="count", default=0, help="Quiet: -q warnings, -qq errors only")
    p.add_argument("--log-file", dest="log_file", default=None, help="Write logs to file.")
    p.add_argument("--json-logs", dest="json_logs", action="store_true", help="Emit NDJSON log lines.")


def _add_patch_target(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        dest="root",
        default=None,
        help=r"Host path where the distro filesystem is visible (e.g. \\wsl.localhost\Ubuntu).",
    )
    p.add_argument(
        "--release",
        dest="release",
        default=None,
        help="Distribution release id selecting release-specific patches (e.g. Ubuntu-22.04).",
    )


def _add_patch_behavior(p: argparse.ArgumentParser) -> None:
    p.add_argument("--dry-run", dest="dry_run", action="store_true", help="Run transformations but write nothing.")
    p.add_argument("--backup", dest="backup", action="store_true", help="Keep a timestamped copy of each replaced file.")
    p.add_argument(
        "--keep-going",
        dest="keep_going",
        action="store_true",
        help="Continue with remaining patches after a failure.",
    )
    p.add_argument("--no-builtin", dest="no_builtin", action="store_true", help="Only apply patches from config files.")
    p.add_argument("--list", dest="list_patches", action="store_true", help="Print the effective patches and exit.")
    p.add_argument("--json-report", dest="json_report", default=None, help="Write a JSON report of the run.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="distropatch",
        description=c("distropatch: first-launch config patches for a mounted distro", "green", ["bold"]),
        formatter_class=HelpFormatter,
        epilog=c("YAML example:\n", "cyan", ["bold"]) + c(YAML_EXAMPLE, "cyan"),
    )
    _add_global_config_logging(p)
    _add_patch_target(p)
    _add_patch_behavior(p)
    return p


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if not args.list_patches and not (args.root and str(args.root).strip()):
        parser.error("--root is required (or set `root:` in a config file)")


def parse_args_with_config(
    argv: Optional[Sequence[str]] = None,
    logger: Optional[logging.Logger] = None,
) -> Tuple[argparse.Namespace, Dict[str, Any], logging.Logger]:
    """
    Two-phase parse.

    Phase 0: parse only the flags needed to find config/logging
    Phase 1: load+merge config files and apply them as argparse defaults
    Phase 2: full parse with defaults applied (CLI flags win over config)

    Returns: (args, merged_config_dict, logger)
    """
    parser = build_parser()

    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", action="append", default=[])
    pre.add_argument("-v", "--verbose", action="count", default=0)
    pre.add_argument("-q", "--quiet", action="count", default=0)
    pre.add_argument("--log-file", dest="log_file", default=None)
    pre.add_argument("--json-logs", dest="json_logs", action="store_true")
    args0, _rest = pre.parse_known_args(argv)

    if logger is None:
        logger = Log.setup(
            args0.verbose,
            args0.log_file,
            quiet=args0.quiet,
            json_logs=args0.json_logs,
        )

    conf: Dict[str, Any] = {}
    cfgs = list(args0.config or [])
    if cfgs:
        cfgs = Config.expand_configs(logger, cfgs)
        conf = Config.load_many(logger, cfgs)
        Config.apply_as_defaults(logger, parser, conf)

    args = parser.parse_args(argv)
    validate_args(parser, args)
    return args, conf, logger
