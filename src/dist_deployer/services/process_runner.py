from __future__ import annotations

import platform
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

from dist_deployer.core.logging import get_logger
from dist_deployer.services.remote_commands import RemoteCommand

_log = get_logger("dist_deployer.proc")


@dataclass
class ProcessResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""


class ProcessRunner(ABC):
    @abstractmethod
    def run(self, program: str, args: List[str]) -> ProcessResult:
        """Run to completion and return exit code plus captured output."""
        raise NotImplementedError


class SubprocessRunner(ProcessRunner):
    """Blocking runner backed by subprocess.run (no shell)."""

    def run(self, program: str, args: List[str]) -> ProcessResult:
        kwargs = {}
        if platform.system().lower() == "windows":
            # ssh/scp are console apps; keep a console window from flashing up
            kwargs["creationflags"] = getattr(subprocess, "CREATE_NO_WINDOW", 0)
        _log.info("exec: %s %s", program, " ".join(args))
        proc = subprocess.run(
            [program] + list(args),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            **kwargs,
        )
        _log.info("exit: %s code=%s", program, proc.returncode)
        if proc.stderr and proc.stderr.strip():
            _log.info("stderr: %s", proc.stderr.strip())
        return ProcessResult(proc.returncode, proc.stdout or "", proc.stderr or "")


class DryRunProcessRunner(ProcessRunner):
    """Reports every command as successful without executing anything.

    `log_cb` receives the printable command line of each call.
    """

    def __init__(self, log_cb: Optional[Callable[[str], None]] = None):
        self._log_cb = log_cb
        self.calls: List[List[str]] = []

    def run(self, program: str, args: List[str]) -> ProcessResult:
        self.calls.append([program] + list(args))
        _log.info("dry-run: %s %s", program, " ".join(args))
        if self._log_cb:
            self._log_cb(RemoteCommand(program, tuple(args)).display())
        return ProcessResult(0)
