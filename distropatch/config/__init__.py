# SPDX-License-Identifier: LGPL-3.0-or-later
# distropatch/config/__init__.py
from .config_loader import Config, registry_from_config

__all__ = ["Config", "registry_from_config"]
