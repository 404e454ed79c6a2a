# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# distropatch/cli/help_texts.py
from __future__ import annotations

# Pure help text used by the argparse epilog. Keep it copy/paste runnable.

YAML_EXAMPLE = r"""# distropatch configuration (YAML)
#
# Run:
#   distropatch --config distro.yaml
#
# Merge multiple configs (later overrides earlier):
#   distropatch --config base.yaml --config ubuntu-22.04.yaml
#
# Any CLI option can be set here (dashes or underscores); CLI flags win.
root: '\\wsl.localhost\Ubuntu-22.04'
release: Ubuntu-22.04
dry_run: false
backup: false
keep_going: false

# Extra patches, layered after the built-in ones (/etc/fstab cloud label removal).
# transform: write | append | remove-label-line
patches:
  all:
    - path: /etc/wsl.conf
      transform: append
      content: |
        [boot]
        systemd=true
  Ubuntu-22.04:
    - path: /etc/systemd/system/snapd.service.d/00-wsl.conf
      transform: write
      content: |
        [Unit]
        ConditionVirtualization=!wsl
"""
