from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from dist_deployer.config.models import DeployConfig
from dist_deployer.core.logging import get_logger
from dist_deployer.core.paths import settings_dir

SETTINGS_FILENAME = "deploy_settings.json"

_log = get_logger("dist_deployer.settings")


class SettingsStore:
    """Load/save the last-used deployment target."""

    def __init__(self, directory: Optional[Path] = None, filename: str = SETTINGS_FILENAME):
        self._directory = directory
        self.filename = filename

    def path(self) -> Path:
        base = self._directory if self._directory is not None else settings_dir()
        return base / self.filename

    def load(self, base: Optional[DeployConfig] = None) -> DeployConfig:
        """Return `base` overridden by whatever the settings file provides.

        Never raises: a missing or unreadable file (or directory) keeps `base` as is.
        """
        base = base or DeployConfig()
        try:
            p = self.path()
            exists = p.exists()
        except OSError as e:
            _log.warning("settings directory unavailable (%s)", e)
            return base
        if not exists:
            _log.info("no settings file at %s", p)
            return base
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except OSError as e:
            _log.warning("settings file unreadable: %s (%s)", p, e)
            return base
        except ValueError as e:
            # corrupted settings; keep a backup so the next save does not destroy it
            _log.warning("settings file malformed: %s (%s)", p, e)
            try:
                p.replace(p.with_name(p.name + ".bak"))
            except OSError:
                _log.warning("could not back up %s", p, exc_info=True)
            return base
        if not isinstance(data, dict):
            _log.warning("settings file root is not an object: %s", p)
            return base
        return base.merged_with(data)

    def save(self, cfg: DeployConfig) -> None:
        p = self.path()
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(cfg.to_json_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        _log.info("settings saved to %s", p)
