# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/patching/registry.py
"""
Which patches apply to which distribution release.

A registry is an immutable value built once at startup and handed to
whoever runs the patches; there is no global instance.

Ownership rule: one transformation is meant to own a guest file per
release. If a path is registered more than once for the same effective
set, every spec is still applied, in registration order (release-agnostic
first), so the last registration decides the final file content.
`conflicts()` lists such paths and `find()` returns the winning spec.
Exact duplicates are applied once.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .paths import GuestPath
from .patch import PatchSpec
from .transforms import RemoveMatchingLabelLine

_LOG = logging.getLogger("distropatch.registry")


def _unique(specs: Iterable[PatchSpec]) -> Tuple[PatchSpec, ...]:
    out: List[PatchSpec] = []
    for s in specs:
        if s not in out:
            out.append(s)
    return tuple(out)


@dataclass(frozen=True)
class PatchRegistry:
    release_agnostic: Tuple[PatchSpec, ...] = ()
    release_specific: Mapping[str, Tuple[PatchSpec, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(
        cls,
        agnostic: Iterable[PatchSpec] = (),
        specific: Optional[Mapping[str, Iterable[PatchSpec]]] = None,
    ) -> "PatchRegistry":
        specific_t = {str(rel): _unique(specs) for rel, specs in (specific or {}).items()}
        return cls(
            release_agnostic=_unique(agnostic),
            release_specific=MappingProxyType(specific_t),
        )

    def releases(self) -> List[str]:
        return sorted(self.release_specific)

    def effective_patches(self, release: Optional[str] = None) -> Tuple[PatchSpec, ...]:
        """Release-agnostic patches followed by `release`'s own; unknown releases get the agnostic set."""
        extra = self.release_specific.get(release, ()) if release is not None else ()
        specs = _unique(self.release_agnostic + tuple(extra))
        for path in self._conflicting(specs):
            _LOG.debug("registry: %s has several owners for release %r; last registration wins", path, release)
        return specs

    def conflicts(self, release: Optional[str] = None) -> List[str]:
        """Guest paths owned by more than one transformation for `release`."""
        return self._conflicting(self.effective_patches(release))

    @staticmethod
    def _conflicting(specs: Iterable[PatchSpec]) -> List[str]:
        seen: Dict[GuestPath, int] = {}
        for s in specs:
            seen[s.config_file_path] = seen.get(s.config_file_path, 0) + 1
        return [str(p) for p, n in seen.items() if n > 1]

    def find(self, path: Union[GuestPath, str], release: Optional[str] = None) -> Optional[PatchSpec]:
        """The spec whose output ends up in `path` for `release` (None if unpatched)."""
        gp = GuestPath.of(path)
        found: Optional[PatchSpec] = None
        for s in self.effective_patches(release):
            if s.config_file_path == gp:
                found = s
        return found

    def is_globally_registered(self, spec: PatchSpec) -> bool:
        return spec in self.release_agnostic

    def merged(self, other: "PatchRegistry") -> "PatchRegistry":
        """Registry with `other`'s entries registered after ours."""
        specific: Dict[str, Tuple[PatchSpec, ...]] = dict(self.release_specific)
        for rel, specs in other.release_specific.items():
            specific[rel] = specific.get(rel, ()) + tuple(specs)
        return PatchRegistry.build(
            agnostic=self.release_agnostic + other.release_agnostic,
            specific=specific,
        )

    def __len__(self) -> int:
        return len(self.release_agnostic) + sum(len(v) for v in self.release_specific.values())


def default_registry() -> PatchRegistry:
    """Patches every distro instance needs on first launch."""
    return PatchRegistry.build(
        agnostic=[
            PatchSpec("/etc/fstab", RemoveMatchingLabelLine()),
        ],
    )
