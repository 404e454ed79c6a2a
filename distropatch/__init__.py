# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/__init__.py
"""
distropatch - first-launch config patching for a Linux distro mounted on the host

Rewrites guest config files (fstab, wsl.conf, systemd drop-ins, ...) through
the host-visible path of the distro's filesystem, before anything runs inside
the guest.

Usage as a library:

    from distropatch import PatchEngine, default_registry

    registry = default_registry()
    engine = PatchEngine()
    for spec in registry.effective_patches("Ubuntu-22.04"):
        engine.apply(spec, r"\\\\wsl.localhost\\Ubuntu-22.04")
"""

__version__ = "0.1.0"

from .core.exceptions import (
    DirectoryCreationError,
    DistroPatchError,
    InvalidPath,
    PatchApplyError,
    TransformationFailure,
    WriteError,
)
from .patching import (
    AppendContent,
    FunctionTransformation,
    GuestPath,
    PatchEngine,
    PatchRegistry,
    PatchSpec,
    RemoveMatchingLabelLine,
    Transformation,
    WriteContent,
    default_registry,
    translate,
)

__all__ = [
    "__version__",
    # Paths
    "GuestPath",
    "translate",
    # Transformations
    "Transformation",
    "RemoveMatchingLabelLine",
    "WriteContent",
    "AppendContent",
    "FunctionTransformation",
    # Patching
    "PatchSpec",
    "PatchEngine",
    "PatchRegistry",
    "default_registry",
    # Errors
    "DistroPatchError",
    "InvalidPath",
    "PatchApplyError",
    "DirectoryCreationError",
    "TransformationFailure",
    "WriteError",
]
