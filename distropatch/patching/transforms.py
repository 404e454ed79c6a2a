# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/patching/transforms.py
"""
Content transformations applied to guest config files.

A transformation reads the current file bytes from `original` (an empty
stream when the file does not exist yet) and writes the complete new file to
`out`. It returns True on success. It never opens files itself; all
filesystem work belongs to the PatchEngine.

Every catalogue entry is a frozen dataclass, so two transformations compare
equal when they are the same kind with the same parameters.
"""
from __future__ import annotations

import io
import logging
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable, ClassVar, Dict, Optional, Tuple, Type, Union

from ..core.exceptions import ConfigError
from ..core.utils import U

_LOG = logging.getLogger("distropatch.transforms")

# Cloud images ship an fstab that mounts the root fs by this label, which
# does not exist under WSL and makes mount units fail at boot.
CLOUDIMG_ROOTFS_LABEL = b"LABEL=cloudimg-rootfs"

TransformFn = Callable[[BinaryIO, BinaryIO], Any]


class Transformation(ABC):
    name: ClassVar[str] = "transformation"

    @abstractmethod
    def transform(self, original: BinaryIO, out: BinaryIO) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True)
class RemoveMatchingLabelLine(Transformation):
    """
    Drop every line whose stripped content starts with `label`.

    Kept lines (comments and blanks included) are copied byte-for-byte with
    their own terminators. When the lines after the last kept line were all
    removed, that line loses its terminator too, so nothing dangles where the
    label line used to be.
    """

    label: bytes = CLOUDIMG_ROOTFS_LABEL
    name: ClassVar[str] = "remove-label-line"

    def __post_init__(self) -> None:
        label = U.to_bytes(self.label).strip()
        if not label:
            raise ValueError("RemoveMatchingLabelLine needs a non-empty label")
        object.__setattr__(self, "label", label)

    def transform(self, original: BinaryIO, out: BinaryIO) -> bool:
        removed = 0
        held: Optional[bytes] = None  # last kept line, written once we know what follows it
        tail_removed = False
        for line in original:
            if line.strip().startswith(self.label):
                removed += 1
                tail_removed = True
                continue
            if held is not None:
                out.write(held)
            held, tail_removed = line, False
        if held is not None:
            out.write(held.rstrip(b"\r\n") if tail_removed else held)
        _LOG.debug("🧹 %s: removed %d line(s) starting with %r", self.name, removed, self.label)
        return True

    def describe(self) -> str:
        return f"{self.name}({U.to_text(self.label)})"


@dataclass(frozen=True)
class WriteContent(Transformation):
    """Ignore the original and write `content`. Used for files that should not exist yet."""

    content: bytes = b""
    name: ClassVar[str] = "write"

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", U.to_bytes(self.content))

    def transform(self, original: BinaryIO, out: BinaryIO) -> bool:
        out.write(self.content)
        return True

    def describe(self) -> str:
        return f"{self.name}({U.human_bytes(len(self.content))})"


@dataclass(frozen=True)
class AppendContent(Transformation):
    """
    Copy the original verbatim, then append `content`.

    With `once` (the default) an original that already ends with `content`
    is echoed unchanged, so running setup twice does not duplicate it.
    """

    content: bytes = b""
    once: bool = True
    name: ClassVar[str] = "append"

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", U.to_bytes(self.content))

    def transform(self, original: BinaryIO, out: BinaryIO) -> bool:
        if not self.once:
            shutil.copyfileobj(original, out)
            out.write(self.content)
            return True

        data = original.read()
        out.write(data)
        if self.content and data.endswith(self.content):
            _LOG.debug("⏭️  %s: content already at the end; leaving original as-is", self.name)
            return True
        out.write(self.content)
        return True

    def describe(self) -> str:
        return f"{self.name}({U.human_bytes(len(self.content))})"


@dataclass(frozen=True)
class FunctionTransformation(Transformation):
    """
    Adapt a plain `fn(original, out) -> bool` callable.
    Equality is identity of `fn`.
    """

    fn: TransformFn = field(compare=True)
    label: str = field(default="", compare=False)
    name: ClassVar[str] = "function"

    def transform(self, original: BinaryIO, out: BinaryIO) -> bool:
        return bool(self.fn(original, out))

    def describe(self) -> str:
        return self.label or getattr(self.fn, "__name__", self.name)


CATALOGUE: Dict[str, Type[Transformation]] = {
    RemoveMatchingLabelLine.name: RemoveMatchingLabelLine,
    WriteContent.name: WriteContent,
    AppendContent.name: AppendContent,
}


def as_transformation(t: Union[Transformation, TransformFn]) -> Transformation:
    if isinstance(t, Transformation):
        return t
    if callable(t):
        return FunctionTransformation(t)
    raise TypeError(f"Not a transformation: {t!r}")


def build_transformation(tag: str, **params: Any) -> Transformation:
    """Instantiate a catalogue entry by tag, e.g. build_transformation("append", content="...")."""
    cls = CATALOGUE.get(str(tag).strip().lower())
    if cls is None:
        raise ConfigError(
            code=2,
            msg=f"Unknown transformation: {tag!r}",
            context={"known": sorted(CATALOGUE)},
        )
    try:
        return cls(**params)
    except (TypeError, ValueError) as e:
        raise ConfigError(code=2, msg=f"Bad parameters for transformation {tag!r}: {e}", cause=e) from e


def run_transformation(t: Transformation, original: bytes) -> Tuple[bool, bytes]:
    """Drive `t` over in-memory buffers. Exceptions from `t` propagate."""
    src = io.BytesIO(original)
    dst = io.BytesIO()
    ok = t.transform(src, dst)
    return bool(ok), dst.getvalue()
