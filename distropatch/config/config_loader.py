# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/config/config_loader.py
from __future__ import annotations

import argparse
import glob
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, NoReturn

import yaml
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from ..core.exceptions import ConfigError, InvalidPath, wrap_config
from ..core.utils import U
from ..patching.patch import PatchSpec
from ..patching.registry import PatchRegistry
from ..patching.transforms import build_transformation

# Release keys under `patches:` meaning "every release".
AGNOSTIC_KEYS = ("all", "*", "any")

_CONFIG_SUFFIXES = (".yaml", ".yml", ".json")


def _die(logger: logging.Logger, msg: str, **ctx: Any) -> NoReturn:
    logger.error(msg)
    raise wrap_config(msg, **ctx)


class Config:
    """Load, merge and apply YAML/JSON config files (later files win)."""

    @staticmethod
    def _parse(p: Path, text: str) -> Any:
        if p.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text) or {}

    @staticmethod
    def load_one(logger: logging.Logger, path: str) -> Dict[str, Any]:
        p = Path(path).expanduser().resolve()
        if not p.is_file():
            _die(logger, f"Config not found: {p}", path=str(p))
        try:
            data = Config._parse(p, p.read_text(encoding="utf-8"))
        except OSError as e:
            _die(logger, f"Failed to read config {p}: {e}", path=str(p))
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            kind = "JSON" if isinstance(e, json.JSONDecodeError) else "YAML"
            _die(logger, f"Invalid {kind} in config {p}: {e}", path=str(p))
        if not isinstance(data, dict):
            _die(logger, f"Config must be a mapping/dict: {p}", path=str(p))

        # Top-level keys only: release ids under `patches:` keep their spelling.
        out = {str(k).replace("-", "_"): v for k, v in data.items()}
        renamed = sorted(str(k) for k in data if str(k) not in out)
        if renamed:
            logger.debug(f"Normalized config keys: {renamed}")
        logger.debug(f"Loaded config {p}:\n{U.json_dump(out)}")
        return out

    @staticmethod
    def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Mappings merge recursively; lists and scalars from `override` replace."""
        merged = dict(base)
        for key, value in override.items():
            old = merged.get(key)
            merged[key] = Config.merge_dicts(old, value) if isinstance(old, dict) and isinstance(value, dict) else value
        return merged

    @staticmethod
    def load_many(logger: logging.Logger, paths: List[str]) -> Dict[str, Any]:
        conf: Dict[str, Any] = {}
        columns = (TextColumn("{task.description}"), BarColumn(), TextColumn("{task.completed}/{task.total}"), TimeElapsedColumn())
        with Progress(*columns, transient=True) as progress:
            task = progress.add_task("Loading configs", total=len(paths))
            for p in paths:
                conf = Config.merge_dicts(conf, Config.load_one(logger, p))
                progress.advance(task)
        return conf

    @staticmethod
    def expand_configs(logger: logging.Logger, configs: List[str]) -> List[str]:
        """Directories expand to their *.yaml/*.yml/*.json files (sorted); globs are expanded."""
        expanded: List[str] = []
        for entry in configs:
            p = Path(entry).expanduser()
            if p.is_dir():
                expanded += [str(f) for f in sorted(p.rglob("*")) if f.is_file() and f.suffix.lower() in _CONFIG_SUFFIXES]
            elif any(ch in entry for ch in "*?["):
                expanded += sorted(glob.glob(entry))
            else:
                expanded.append(entry)
        logger.debug(f"Expanded configs: {expanded}")
        return expanded

    @staticmethod
    def apply_as_defaults(logger: logging.Logger, parser: argparse.ArgumentParser, conf: Dict[str, Any]) -> None:
        """Config values become argparse defaults, so explicit CLI flags still win."""
        for act in parser._actions:
            if act.dest not in conf:
                continue
            logger.debug(f"[Config] default {act.dest}: {act.default!r} -> {conf[act.dest]!r}")
            act.default = conf[act.dest]
            if act.required and conf[act.dest] is not None:
                act.required = False


def _spec_from_entry(entry: Any, where: str) -> PatchSpec:
    if not isinstance(entry, Mapping):
        raise ConfigError(code=2, msg=f"{where}: patch entry must be a mapping", context={"entry": repr(entry)})
    params = {str(k).replace("-", "_"): v for k, v in entry.items()}
    path = params.pop("path", None)
    tag = params.pop("transform", None)
    if not path or not tag:
        raise ConfigError(code=2, msg=f"{where}: patch entry needs both 'path' and 'transform'", context={"entry": dict(entry)})
    try:
        return PatchSpec(str(path), build_transformation(str(tag), **params))
    except InvalidPath as e:
        raise wrap_config(f"{where}: {e}", e, path=path) from e
    except ConfigError as e:
        raise e.with_context(where=where)


def registry_from_config(conf: Mapping[str, Any]) -> PatchRegistry:
    """
    Build a registry from the `patches:` section of a merged config:

      patches:
        all:
          - {path: /etc/wsl.conf, transform: append, content: "[boot]\\nsystemd=true\\n"}
        Ubuntu-22.04:
          - {path: /etc/fstab, transform: remove-label-line, label: LABEL=cloudimg-rootfs}
    """
    section = conf.get("patches") or {}
    if not isinstance(section, Mapping):
        raise ConfigError(code=2, msg="'patches' must map release ids to lists of patches")

    agnostic: List[PatchSpec] = []
    specific: Dict[str, List[PatchSpec]] = {}
    for release, entries in section.items():
        release = str(release)
        if entries is None:
            continue
        if not isinstance(entries, list):
            raise ConfigError(code=2, msg=f"patches.{release} must be a list", context={"release": release})
        specs = [_spec_from_entry(e, f"patches.{release}[{i}]") for i, e in enumerate(entries)]
        if release.lower() in AGNOSTIC_KEYS:
            agnostic.extend(specs)
        else:
            specific.setdefault(release, []).extend(specs)
    return PatchRegistry.build(agnostic=agnostic, specific=specific)
