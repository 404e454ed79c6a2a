# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/patching/paths.py
"""
Guest <-> host path translation.

Guest paths name files inside the Linux distribution's own namespace and are
always POSIX (`/etc/fstab`). Host paths are pathlib objects in the host's
native grammar (`\\\\wsl.localhost\\Ubuntu\\etc\\fstab` on Windows). The two
never mix: `translate()` is the only place one becomes the other.
"""
from __future__ import annotations

import pathlib
from dataclasses import dataclass
from typing import Optional, Tuple, Type, Union

from ..core.exceptions import InvalidPath

HostPath = pathlib.PurePath


@dataclass(frozen=True, order=True)
class GuestPath:
    """An absolute POSIX path inside the guest filesystem."""

    value: str

    def __post_init__(self) -> None:
        v = self.value
        if not isinstance(v, str):
            raise InvalidPath(msg=f"Guest path must be a string, got {type(v).__name__}", context={"path": repr(v)})
        if not v.startswith("/"):
            raise InvalidPath(msg=f"Guest path is not absolute: {v!r}", context={"path": v})
        if "\x00" in v:
            raise InvalidPath(msg="Guest path contains a null byte", context={"path": v})
        segments = v.split("/")
        if ".." in segments:
            raise InvalidPath(msg=f"Guest path must not contain '..': {v!r}", context={"path": v})
        if any("\\" in seg for seg in segments):
            raise InvalidPath(msg=f"Guest path segment contains a backslash: {v!r}", context={"path": v})
        # One spelling per file: "/etc//fstab", "/etc/./fstab" and "/etc/fstab/" all become "/etc/fstab".
        object.__setattr__(self, "value", "/" + "/".join(seg for seg in segments if seg not in ("", ".")))

    @classmethod
    def of(cls, path: Union["GuestPath", str]) -> "GuestPath":
        return path if isinstance(path, GuestPath) else cls(path)

    @property
    def parts(self) -> Tuple[str, ...]:
        return tuple(seg for seg in self.value.split("/") if seg)

    @property
    def is_root(self) -> bool:
        return not self.parts

    @property
    def name(self) -> str:
        parts = self.parts
        return parts[-1] if parts else ""

    def __str__(self) -> str:
        return self.value


def translate(
    host_prefix: Union[str, pathlib.PurePath],
    guest_path: Union[GuestPath, str],
    *,
    flavor: Optional[Type[pathlib.PurePath]] = None,
) -> pathlib.PurePath:
    """
    Map `guest_path` to where the host sees it under `host_prefix`.

    The prefix is opaque: it is never validated and may name a directory
    that is not a real distro mount (tests use scratch dirs). Guest
    segments are joined verbatim with the host's native join.

    `flavor` is the pathlib class used for the host side; it defaults to
    `pathlib.Path` (the running host, and the only flavor that can do I/O).
    Pass `pathlib.PureWindowsPath` to compute Windows paths anywhere, e.g.
    a `\\\\wsl$\\Ubuntu` prefix and `/etc/fstab` give `\\\\wsl$\\Ubuntu\\etc\\fstab`.
    The guest root `/` returns the prefix unchanged.
    """
    gp = GuestPath.of(guest_path)
    cls = flavor or pathlib.Path
    prefix = cls(host_prefix)
    for seg in gp.parts:
        component = cls(seg)
        if component.anchor or len(component.parts) != 1:
            # e.g. "C:" on Windows would replace the prefix instead of extending it
            raise InvalidPath(
                msg=f"Guest path segment {seg!r} is not a single {cls.__name__} component",
                context={"path": str(gp), "segment": seg},
            )
    return prefix.joinpath(*gp.parts)
