from __future__ import annotations

"""Command lines for the two remote steps of a deployment.

Both steps go through the system OpenSSH client (`ssh` / `scp`); no SSH
protocol code lives in this package. Everything here is pure apart from
locating the executables and expanding the local source pattern.
"""

import glob
import os
import platform
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from dist_deployer.config.models import DeployConfig
from dist_deployer.core.paths import package_root

# Host keys are not verified: the tool targets trusted internal machines.
HOST_KEY_OPTION = ["-o", "StrictHostKeyChecking=no"]


@dataclass(frozen=True)
class RemoteCommand:
    program: str
    args: Tuple[str, ...]

    def argv(self) -> List[str]:
        return [self.program, *self.args]

    def display(self) -> str:
        if platform.system().lower() == "windows":
            return subprocess.list2cmdline(self.argv())
        return shlex.join(self.argv())


def _bundled(name: str) -> Optional[str]:
    p = package_root() / "third_party" / "openssh" / f"{name}.exe"
    return str(p) if p.exists() else None


def _find_program(name: str) -> Optional[str]:
    if platform.system().lower() == "windows":
        return _bundled(name) or shutil.which(name)
    return shutil.which(name)


def find_ssh_program() -> Optional[str]:
    return _find_program("ssh")


def find_scp_program() -> Optional[str]:
    return _find_program("scp")


def remote_target(cfg: DeployConfig) -> str:
    return f"{cfg.remote_user}@{cfg.remote_host}"


def build_clear_command(cfg: DeployConfig, ssh_program: Optional[str] = None) -> RemoteCommand:
    """ssh -i <key> -o StrictHostKeyChecking=no <user>@<host> "rm -rf <dest>/*"."""
    args = ["-i", cfg.key_path] + HOST_KEY_OPTION
    args.append(remote_target(cfg))
    args.append(f"rm -rf {cfg.remote_dest}/*")
    return RemoteCommand(ssh_program or find_ssh_program() or "ssh", tuple(args))


def expand_source(source_path: str, *, expand: Optional[bool] = None) -> List[str]:
    """Expand `<source>/*` the way a POSIX shell would.

    Only the trailing `*` is a wildcard; the directory name is matched
    literally even if it contains `[`, `?` or `*`. Windows OpenSSH scp
    expands wildcards itself, so the pattern is passed through there. An
    unmatched pattern stays literal and scp reports it.
    """
    pattern = f"{source_path}/*"
    if expand is None:
        expand = platform.system().lower() != "windows"
    if not expand:
        return [pattern]
    matches = sorted(glob.glob(os.path.join(glob.escape(source_path), "*")))
    return matches or [pattern]


def build_copy_command(
    cfg: DeployConfig,
    scp_program: Optional[str] = None,
    *,
    expand: Optional[bool] = None,
) -> RemoteCommand:
    """scp -r -i <key> -o StrictHostKeyChecking=no <source>/* <user>@<host>:<dest>."""
    args = ["-r", "-i", cfg.key_path] + HOST_KEY_OPTION
    args += expand_source(cfg.source_path, expand=expand)
    args.append(f"{remote_target(cfg)}:{cfg.remote_dest}")
    return RemoteCommand(scp_program or find_scp_program() or "scp", tuple(args))


def source_is_dir(cfg: DeployConfig) -> bool:
    return bool(cfg.source_path) and Path(cfg.source_path).is_dir()


def key_is_file(cfg: DeployConfig) -> bool:
    return bool(cfg.key_path) and Path(cfg.key_path).is_file()
