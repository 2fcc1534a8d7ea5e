from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict

# dataclass field -> key in deploy_settings.json
JSON_KEYS = {
    "source_path": "SourcePath",
    "remote_host": "RemoteHost",
    "remote_user": "RemoteUser",
    "key_path": "KeyPath",
    "remote_dest": "RemoteDest",
}


@dataclass(frozen=True)
class DeployConfig:
    source_path: str = ""
    remote_host: str = ""
    remote_user: str = ""
    key_path: str = ""
    remote_dest: str = ""

    def to_json_dict(self) -> Dict[str, str]:
        return {JSON_KEYS[f.name]: getattr(self, f.name) for f in fields(self)}

    def merged_with(self, data: Dict[str, Any]) -> "DeployConfig":
        """Return a copy overridden by the string values present in `data`.

        Keys that are absent, not strings or unknown leave the current value.
        """
        values = {}
        for f in fields(self):
            v = data.get(JSON_KEYS[f.name])
            values[f.name] = v if isinstance(v, str) else getattr(self, f.name)
        return DeployConfig(**values)
