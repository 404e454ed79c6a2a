# SPDX-License-Identifier: LGPL-3.0-or-later
# distropatch/patching/__init__.py
from .engine import PatchEngine, PatchReport, PatchResult
from .patch import PatchSpec
from .paths import GuestPath, HostPath, translate
from .registry import PatchRegistry, default_registry
from .transforms import (
    CATALOGUE,
    AppendContent,
    FunctionTransformation,
    RemoveMatchingLabelLine,
    Transformation,
    WriteContent,
    build_transformation,
)

__all__ = [
    "AppendContent",
    "CATALOGUE",
    "FunctionTransformation",
    "GuestPath",
    "HostPath",
    "PatchEngine",
    "PatchRegistry",
    "PatchReport",
    "PatchResult",
    "PatchSpec",
    "RemoveMatchingLabelLine",
    "Transformation",
    "WriteContent",
    "build_transformation",
    "default_registry",
    "translate",
]
