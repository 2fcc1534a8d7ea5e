from __future__ import annotations

import os
import sys
from pathlib import Path

HOME_ENV = "DIST_DEPLOYER_HOME"


def is_frozen_exe() -> bool:
    return bool(getattr(sys, "frozen", False))


def app_data_dir() -> Path:
    """Per-user app data directory used for logs and preferences."""

    override = os.environ.get(HOME_ENV, "").strip()
    base = Path(override) if override else Path.home() / ".dist_deployer"
    base.mkdir(parents=True, exist_ok=True)
    return base


def settings_dir() -> Path:
    """Directory holding deploy_settings.json.

    A frozen build keeps its settings next to the executable so a copied
    folder carries its last-used target with it.
    """
    if is_frozen_exe() and not os.environ.get(HOME_ENV):
        return Path(sys.executable).resolve().parent
    return app_data_dir()


def package_root() -> Path:
    # .../dist_deployer/core/paths.py -> .../dist_deployer
    return Path(__file__).resolve().parents[1]
