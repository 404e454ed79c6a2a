# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/patching/patch.py
from __future__ import annotations

import pathlib
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, Union

from .paths import GuestPath, translate
from .transforms import Transformation, TransformFn, as_transformation


@dataclass(frozen=True)
class PatchSpec:
    """A guest config file and the one transformation that owns it."""

    config_file_path: GuestPath
    transformation: Transformation

    def __init__(
        self,
        config_file_path: Union[GuestPath, str],
        transformation: Union[Transformation, TransformFn],
    ) -> None:
        object.__setattr__(self, "config_file_path", GuestPath.of(config_file_path))
        object.__setattr__(self, "transformation", as_transformation(transformation))

    @property
    def path(self) -> str:
        return str(self.config_file_path)

    def host_path(
        self,
        host_prefix: Union[str, pathlib.PurePath],
        *,
        flavor: Optional[Type[pathlib.PurePath]] = None,
    ) -> pathlib.PurePath:
        return translate(host_prefix, self.config_file_path, flavor=flavor)

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "transformation": self.transformation.describe()}
