# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/core/file_ops.py
"""
Atomic file operation utilities.

Patched config files are replaced with temporary file + rename so a failed
write never leaves a half-written file at the destination.
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional


@contextmanager
def atomic_write(
    target_path: Path,
    *,
    chmod: Optional[int] = None,
    suffix: str = ".part",
    dir: Optional[Path] = None,
    delete_on_error: bool = True,
) -> Generator[Path, None, None]:
    """
    Context manager for atomic file writes using temporary file + rename.

    Creates a temporary file next to the target, yields its path for writing,
    then renames it over the target on success. `chmod` is applied to the
    temporary file before the rename (mkstemp creates it 0600). The temporary
    file is removed if the block raises. The target's parent directory must
    already exist.

    Example:
        with atomic_write(Path("/mnt/distro/etc/wsl.conf")) as temp_path:
            temp_path.write_bytes(data)
    """
    target_path = Path(target_path)
    temp_dir = Path(dir) if dir else target_path.parent

    fd, temp_name = tempfile.mkstemp(
        suffix=suffix,
        prefix=f".{target_path.name}.",
        dir=str(temp_dir),
    )
    temp_path = Path(temp_name)

    try:
        os.close(fd)
        yield temp_path
        if chmod is not None:
            os.chmod(temp_path, chmod)
        os.replace(temp_path, target_path)
    except BaseException:
        if delete_on_error:
            safe_unlink(temp_path)
        raise


def safe_unlink(path: Path, missing_ok: bool = True) -> None:
    """
    Delete a file, optionally ignoring if it doesn't exist.
    Other errors are swallowed only when missing_ok is set (best-effort cleanup).
    """
    try:
        Path(path).unlink(missing_ok=missing_ok)
    except OSError:
        if not missing_ok:
            raise


def ensure_parent_dir(path: Path) -> None:
    """
    Ensure parent directory of a path exists, creating every missing ancestor.
    An already existing directory is not an error.
    """
    Path(path).parent.mkdir(parents=True, exist_ok=True)
