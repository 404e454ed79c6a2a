# SPDX-License-Identifier: LGPL-3.0-or-later
# distropatch/core/__init__.py
from .exceptions import (
    ConfigError,
    DirectoryCreationError,
    DistroPatchError,
    Fatal,
    InvalidPath,
    PatchApplyError,
    PatchIOError,
    TransformationFailure,
    WriteError,
)

__all__ = [
    "ConfigError",
    "DirectoryCreationError",
    "DistroPatchError",
    "Fatal",
    "InvalidPath",
    "PatchApplyError",
    "PatchIOError",
    "TransformationFailure",
    "WriteError",
]
