from __future__ import annotations

"""Deployment flow: validate -> confirm -> save -> clear remote -> copy.

The runner talks to the window only through `DeployView`, and to the
outside world only through a `ProcessRunner`, so the whole flow can be
driven from tests with fakes.
"""

from enum import Enum
from typing import Callable, List, Optional, Protocol, runtime_checkable

from dist_deployer.config.models import DeployConfig
from dist_deployer.config.storage import SettingsStore
from dist_deployer.core.debug_support import log_exception_with_id
from dist_deployer.core.i18n import t
from dist_deployer.core.logging import get_logger
from dist_deployer.services.process_runner import ProcessRunner
from dist_deployer.services.remote_commands import (
    RemoteCommand,
    build_clear_command,
    build_copy_command,
    key_is_file,
    source_is_dir,
)

_log = get_logger("dist_deployer.deploy")


class DeployState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    CONFIRMING = "confirming"
    CLEARING = "clearing"
    COPYING = "copying"
    DONE = "done"
    FAILED = "failed"


class DeployOutcome(Enum):
    SUCCEEDED = "succeeded"
    INVALID = "invalid"
    ABORTED = "aborted"
    FAILED = "failed"


class DeployError(Exception):
    pass


class ValidationError(DeployError):
    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class UserAborted(DeployError):
    pass


class RemoteStepFailure(DeployError):
    """An external step exited non-zero (or could not be started)."""

    step = ""

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class RemoteClearFailure(RemoteStepFailure):
    step = "clear"


class RemoteCopyFailure(RemoteStepFailure):
    step = "copy"


_STEP_AREAS = {"clear": "CLR", "copy": "CPY"}


def failure_area(exc: BaseException) -> str:
    """Error-id prefix naming where a deployment broke."""
    if isinstance(exc, RemoteStepFailure):
        return _STEP_AREAS.get(exc.step, "RUN")
    if isinstance(exc, OSError):
        return "SAVE"
    return "DEP"


def validate_config(cfg: DeployConfig) -> None:
    """Raise ValidationError for the first problem found, in form order."""
    if not source_is_dir(cfg):
        raise ValidationError("source_missing", t("validation.source_missing", path=cfg.source_path))
    if not cfg.remote_host.strip():
        raise ValidationError("host_missing", t("validation.host_missing"))
    if not cfg.remote_user.strip():
        raise ValidationError("user_missing", t("validation.user_missing"))
    if not cfg.remote_dest.strip():
        raise ValidationError("dest_missing", t("validation.dest_missing"))
    if not key_is_file(cfg):
        raise ValidationError("key_missing", t("validation.key_missing", path=cfg.key_path))


@runtime_checkable
class DeployView(Protocol):
    """What the runner needs from the window."""

    def log(self, message: str) -> None: ...

    def confirm(self, title: str, message: str) -> bool: ...

    def warn(self, title: str, message: str) -> None: ...

    def notify_success(self, title: str, message: str) -> None: ...

    def notify_error(self, title: str, message: str) -> None: ...


class DeploymentRunner:
    def __init__(
        self,
        view: DeployView,
        store: SettingsStore,
        process_runner: ProcessRunner,
        *,
        ssh_program: Optional[str] = None,
        scp_program: Optional[str] = None,
        expand_source: Optional[bool] = None,
    ):
        self.view = view
        self.store = store
        self.process_runner = process_runner
        self.ssh_program = ssh_program
        self.scp_program = scp_program
        self.expand_source = expand_source
        self.state = DeployState.IDLE
        self._busy = False
        self._busy_listeners: List[Callable[[bool], None]] = []

    # ---- busy flag
    @property
    def busy(self) -> bool:
        return self._busy

    def on_busy_changed(self, cb: Callable[[bool], None]) -> None:
        self._busy_listeners.append(cb)

    def _set_busy(self, busy: bool) -> None:
        if busy == self._busy:
            return
        self._busy = busy
        for cb in list(self._busy_listeners):
            cb(busy)

    def _set_state(self, state: DeployState) -> None:
        _log.debug("state %s -> %s", self.state.value, state.value)
        self.state = state

    def _log_line(self, message: str) -> None:
        _log.info(message)
        self.view.log(message)

    # ---- flow
    def deploy(self, cfg: DeployConfig, process_runner: Optional[ProcessRunner] = None) -> DeployOutcome:
        """Run one deployment attempt; always ends back in IDLE."""
        if self._busy:
            _log.warning("deploy requested while busy; ignored")
            self.view.log(t("run.busy"))
            return DeployOutcome.ABORTED

        runner = process_runner or self.process_runner
        try:
            self._set_state(DeployState.VALIDATING)
            try:
                validate_config(cfg)
            except ValidationError as e:
                _log.info("validation failed: %s", e.reason)
                self.view.warn(t("validation.title"), str(e))
                return DeployOutcome.INVALID

            self._set_state(DeployState.CONFIRMING)
            try:
                self._confirm(cfg)
            except UserAborted:
                self._log_line(t("run.cancelled"))
                return DeployOutcome.ABORTED

            self._set_busy(True)
            try:
                self._save(cfg)
                self._set_state(DeployState.CLEARING)
                self._clear(cfg, runner)
                self._set_state(DeployState.COPYING)
                self._copy(cfg, runner)
            except (RemoteStepFailure, OSError) as e:
                self._set_state(DeployState.FAILED)
                err_id = log_exception_with_id(failure_area(e), e, logger_name="dist_deployer.deploy")
                self.view.log(t("run.failed", error=e))
                self.view.notify_error(t("notify.error_title"), f"{e}\n\n{t('common.error_code')}: {err_id}")
                return DeployOutcome.FAILED

            self._set_state(DeployState.DONE)
            self._log_line(t("run.done"))
            self.view.notify_success(t("notify.success_title"), t("notify.success_message"))
            return DeployOutcome.SUCCEEDED
        finally:
            self._set_busy(False)
            self._set_state(DeployState.IDLE)

    def _confirm(self, cfg: DeployConfig) -> None:
        msg = t("confirm.message", dest=cfg.remote_dest, host=cfg.remote_host)
        if self.view.confirm(t("confirm.title"), msg) is not True:
            raise UserAborted()

    def _save(self, cfg: DeployConfig) -> None:
        try:
            self.store.save(cfg)
        except OSError as e:
            raise OSError(t("run.save_failed", error=e)) from e

    def _run_step(self, cmd: RemoteCommand, runner: ProcessRunner, failure: type, template: str) -> None:
        _log.info("command: %s", cmd.display())
        try:
            result = runner.run(cmd.program, list(cmd.args))
        except OSError as e:
            raise failure(t("run.start_failed", program=cmd.program, error=e), None, str(e)) from e
        if result.exit_code != 0:
            stderr = result.stderr.strip()
            raise failure(t(template, code=result.exit_code, stderr=stderr), result.exit_code, result.stderr)

    def _clear(self, cfg: DeployConfig, runner: ProcessRunner) -> None:
        self._log_line(t("run.clearing", dest=cfg.remote_dest))
        cmd = build_clear_command(cfg, self.ssh_program)
        self._run_step(cmd, runner, RemoteClearFailure, "run.clear_failed")

    def _copy(self, cfg: DeployConfig, runner: ProcessRunner) -> None:
        self._log_line(t("run.copying", source=cfg.source_path))
        cmd = build_copy_command(cfg, self.scp_program, expand=self.expand_source)
        self._run_step(cmd, runner, RemoteCopyFailure, "run.copy_failed")
