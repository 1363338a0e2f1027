"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import logging
import os
import sys
from pathlib import Path

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
# This ensures that the local coverplane package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of coverplane modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("coverplane"):
        del sys.modules[module_name]


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch):
    """Keep user and environment configuration out of every test."""
    import coverplane.config.loader as loader

    home = tmp_path_factory.mktemp("home")
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", home / "config.yaml")
    for key in list(os.environ):
        if key.upper().startswith("COVERPLANE__"):
            monkeypatch.delenv(key)
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
