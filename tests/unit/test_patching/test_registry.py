# SPDX-License-Identifier: LGPL-3.0-or-later
"""Wiring: which transformation owns which guest file, per release."""
from __future__ import annotations

from pathlib import PureWindowsPath

import pytest

from distropatch.core.exceptions import InvalidPath
from distropatch.patching.patch import PatchSpec
from distropatch.patching.registry import PatchRegistry, default_registry
from distropatch.patching.transforms import AppendContent, RemoveMatchingLabelLine, WriteContent


def _noop(original, out):
    return True


@pytest.mark.unit
class TestPatchSpec:
    def test_structural_equality(self):
        assert PatchSpec("/etc/fstab", RemoveMatchingLabelLine()) == PatchSpec("/etc/fstab", RemoveMatchingLabelLine())
        assert PatchSpec("/etc/fstab", _noop) == PatchSpec("/etc/fstab", _noop)
        assert PatchSpec("/etc/fstab", _noop) != PatchSpec("/etc/fstab", RemoveMatchingLabelLine())
        assert PatchSpec("/etc/fstab", _noop) != PatchSpec("/etc/mtab", _noop)

    def test_hashable(self):
        assert len({PatchSpec("/etc/fstab", _noop), PatchSpec("/etc/fstab", _noop)}) == 1

    def test_invalid_path(self):
        with pytest.raises(InvalidPath):
            PatchSpec("etc/fstab", _noop)

    def test_immutable(self):
        spec = PatchSpec("/etc/fstab", _noop)
        with pytest.raises(AttributeError):
            spec.transformation = WriteContent(b"x")  # type: ignore[misc]

    def test_host_path(self):
        spec = PatchSpec("/etc/fstab", _noop)
        assert spec.host_path(r"\\wsl$\Ubuntu", flavor=PureWindowsPath) == PureWindowsPath(r"\\wsl$\Ubuntu\etc\fstab")

    def test_to_dict(self):
        d = PatchSpec("/etc/fstab", RemoveMatchingLabelLine()).to_dict()
        assert d == {"path": "/etc/fstab", "transformation": "remove-label-line(LABEL=cloudimg-rootfs)"}


@pytest.mark.unit
class TestDefaultRegistry:
    def test_cloudimg_label_globally_registered(self):
        # /etc/fstab must be handled by RemoveMatchingLabelLine for all distros.
        assert default_registry().is_globally_registered(PatchSpec("/etc/fstab", RemoveMatchingLabelLine()))

    def test_unknown_release_gets_agnostic_set(self):
        reg = default_registry()
        assert reg.effective_patches("Ubuntu-99.04") == reg.release_agnostic
        assert reg.effective_patches(None) == reg.release_agnostic

    def test_find(self):
        reg = default_registry()
        assert reg.find("/etc/fstab") == PatchSpec("/etc/fstab", RemoveMatchingLabelLine())
        assert reg.find("/etc/wsl.conf") is None


@pytest.mark.unit
class TestRegistry:
    def _registry(self):
        return PatchRegistry.build(
            agnostic=[
                PatchSpec("/etc/fstab", RemoveMatchingLabelLine()),
                PatchSpec("/etc/wsl.conf", AppendContent(b"[boot]\nsystemd=true\n")),
            ],
            specific={
                "Ubuntu-22.04": [PatchSpec("/etc/systemd/system/snapd.service.d/00-wsl.conf", WriteContent(b"x"))],
                "Ubuntu-18.04": [PatchSpec("/etc/wsl.conf", WriteContent(b"[user]\n"))],
            },
        )

    @pytest.mark.parametrize("release", [None, "Ubuntu-22.04", "Ubuntu-18.04", "Debian", ""])
    def test_agnostic_entries_always_present_in_order(self, release):
        reg = self._registry()
        effective = reg.effective_patches(release)
        assert effective[: len(reg.release_agnostic)] == reg.release_agnostic

    def test_release_specific_are_additive(self):
        reg = self._registry()
        paths = [s.path for s in reg.effective_patches("Ubuntu-22.04")]
        assert paths == ["/etc/fstab", "/etc/wsl.conf", "/etc/systemd/system/snapd.service.d/00-wsl.conf"]

    def test_other_release_not_included(self):
        paths = [s.path for s in self._registry().effective_patches("Ubuntu-22.04")]
        assert paths.count("/etc/wsl.conf") == 1

    def test_last_registration_wins(self):
        reg = self._registry()
        assert reg.conflicts("Ubuntu-18.04") == ["/etc/wsl.conf"]
        assert reg.conflicts("Ubuntu-22.04") == []
        assert reg.find("/etc/wsl.conf", "Ubuntu-18.04") == PatchSpec("/etc/wsl.conf", WriteContent(b"[user]\n"))
        assert reg.find("/etc/wsl.conf", "Ubuntu-22.04").transformation == AppendContent(b"[boot]\nsystemd=true\n")

    def test_exact_duplicates_collapse(self):
        spec = PatchSpec("/etc/fstab", RemoveMatchingLabelLine())
        reg = PatchRegistry.build(agnostic=[spec, spec], specific={"X": [spec]})
        assert reg.effective_patches("X") == (spec,)
        assert reg.conflicts("X") == []

    def test_path_aliases_share_one_file(self):
        reg = PatchRegistry.build(
            agnostic=[PatchSpec("/etc/fstab", RemoveMatchingLabelLine())],
            specific={"X": [PatchSpec("/etc//fstab", WriteContent(b"x"))]},
        )
        assert reg.conflicts("X") == ["/etc/fstab"]
        assert reg.find("/etc/./fstab", "X").transformation == WriteContent(b"x")

    def test_alias_of_same_spec_is_a_duplicate(self):
        reg = PatchRegistry.build(
            agnostic=[PatchSpec("/etc/fstab", RemoveMatchingLabelLine()), PatchSpec("/etc/fstab/", RemoveMatchingLabelLine())],
        )
        assert len(reg.effective_patches()) == 1

    def test_releases_and_len(self):
        reg = self._registry()
        assert reg.releases() == ["Ubuntu-18.04", "Ubuntu-22.04"]
        assert len(reg) == 4

    def test_immutable(self):
        reg = self._registry()
        with pytest.raises(TypeError):
            reg.release_specific["Debian"] = ()  # type: ignore[index]
        with pytest.raises(AttributeError):
            reg.release_agnostic = ()  # type: ignore[misc]

    def test_merged_layers_after(self):
        extra = PatchRegistry.build(
            agnostic=[PatchSpec("/etc/fstab", WriteContent(b""))],
            specific={"Ubuntu-22.04": [PatchSpec("/etc/hosts", AppendContent(b"127.0.1.1 x\n"))]},
        )
        reg = default_registry().merged(extra)

        assert reg.is_globally_registered(PatchSpec("/etc/fstab", RemoveMatchingLabelLine()))
        assert reg.find("/etc/fstab") == PatchSpec("/etc/fstab", WriteContent(b""))
        assert [s.path for s in reg.effective_patches("Ubuntu-22.04")][-1] == "/etc/hosts"

    def test_empty_registry(self):
        reg = PatchRegistry()
        assert reg.effective_patches("anything") == ()
        assert reg.releases() == []
