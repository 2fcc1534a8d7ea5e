from __future__ import annotations

import platform
import sys
import uuid
from dataclasses import dataclass

from dist_deployer.core.logging import get_logger


@dataclass(frozen=True)
class ErrorId:
    """Short user-facing error identifier for correlating UI errors with logs."""

    area: str
    token: str

    def __str__(self) -> str:
        return f"{self.area}-{self.token}"


def new_error_id(area: str) -> ErrorId:
    area = (area or "GEN").upper()
    token = uuid.uuid4().hex[:6].upper()
    return ErrorId(area=area, token=token)


def log_startup_snapshot() -> None:
    """Log a one-shot environment snapshot useful for field debugging."""

    log = get_logger("dist_deployer.startup")
    try:
        from dist_deployer import __version__
    except Exception:
        __version__ = "unknown"

    frozen = bool(getattr(sys, "frozen", False))

    try:
        import PySide6
        from PySide6 import QtCore

        pyside_v = getattr(PySide6, "__version__", "")
        qt_v = QtCore.qVersion()
    except Exception:
        pyside_v = ""
        qt_v = ""

    log.info("=== App startup ===")
    log.info("app_version=%s", __version__)
    log.info("mode=%s", "standalone_exe" if frozen else "source")
    log.info("python=%s", sys.version.split()[0])
    log.info("os=%s %s", platform.system(), platform.release())
    log.info("arch=%s", platform.machine())
    if pyside_v:
        log.info("pyside6=%s", pyside_v)
    if qt_v:
        log.info("qt=%s", qt_v)

    # External tools (best-effort)
    try:
        from dist_deployer.services.remote_commands import find_scp_program, find_ssh_program

        log.info("ssh_path=%s", find_ssh_program())
        log.info("scp_path=%s", find_scp_program())
    except Exception:
        pass


def log_exception_with_id(area: str, exc: BaseException, *, logger_name: str = "dist_deployer") -> ErrorId:
    """Log an exception and return a stable error id to show the user."""

    err_id = new_error_id(area)
    get_logger(logger_name).error("Error-ID=%s", str(err_id), exc_info=exc)
    return err_id


def install_excepthook() -> None:
    """Route uncaught exceptions to the app log under a CRASH error id."""

    def _hook(exc_type, exc, tb):
        if not issubclass(exc_type, KeyboardInterrupt):
            log_exception_with_id("CRASH", exc.with_traceback(tb))
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _hook
