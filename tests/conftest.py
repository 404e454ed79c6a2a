# SPDX-License-Identifier: LGPL-3.0-or-later
import logging
import os
import shutil
import sys
from pathlib import Path

import pytest

_THIS_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _THIS_DIR.parent

if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

os.environ.setdefault("PYTHONPATH", str(_REPO_ROOT))


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without filesystem side effects")
    config.addinivalue_line("markers", "integration: tests that patch files under a scratch prefix")
    config.addinivalue_line("markers", "security: path traversal and redaction checks")


@pytest.fixture
def distro_prefix(tmp_path):
    """A scratch directory standing in for the host-visible distro root."""
    prefix = tmp_path / "distro-root"
    prefix.mkdir()
    yield prefix
    shutil.rmtree(prefix, ignore_errors=True)


@pytest.fixture
def make_guest_file(distro_prefix):
    """Create a guest file with `content` (bytes or str) under the scratch prefix."""

    def _make(guest_path: str, content) -> Path:
        p = distro_prefix.joinpath(*[s for s in guest_path.split("/") if s])
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(content if isinstance(content, bytes) else content.encode("utf-8"))
        return p

    return _make


@pytest.fixture(autouse=True)
def _reset_project_logger():
    """main() installs handlers bound to the captured stderr; drop them after each test."""
    yield
    logger = logging.getLogger("distropatch")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
