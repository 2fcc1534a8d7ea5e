from __future__ import annotations

from datetime import datetime
from typing import Optional

from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import (
    QApplication, QCheckBox, QFileDialog, QFormLayout, QHBoxLayout, QLabel,
    QLineEdit, QMessageBox, QPlainTextEdit, QPushButton, QVBoxLayout, QWidget,
)

import shiboken6

from dist_deployer.config.models import DeployConfig
from dist_deployer.config.storage import SettingsStore
from dist_deployer.core.i18n import t
from dist_deployer.core.ui_errors import show_exception
from dist_deployer.services.deployer import DeploymentRunner
from dist_deployer.services.process_runner import DryRunProcessRunner, ProcessRunner, SubprocessRunner


class DeployWidget(QWidget):
    """
    Top: target form (source, host, user, key, destination) + Deploy
    Bottom: append-only log of the current session
    """

    def __init__(
        self,
        store: Optional[SettingsStore] = None,
        process_runner: Optional[ProcessRunner] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.setObjectName("DeployWidget")
        self.store = store or SettingsStore()

        self.source_path = QLineEdit()
        self.remote_host = QLineEdit()
        self.remote_user = QLineEdit()
        self.key_path = QLineEdit()
        self.remote_dest = QLineEdit()

        self.btn_browse_source = QPushButton()
        self.btn_browse_source.clicked.connect(self.pick_source)
        self.btn_browse_key = QPushButton()
        self.btn_browse_key.clicked.connect(self.pick_key)

        self.cb_dry = QCheckBox()

        self.btn_deploy = QPushButton()
        self.btn_deploy.clicked.connect(self.deploy_clicked)

        self.console = QPlainTextEdit()
        self.console.setReadOnly(True)
        self.lbl_console = QLabel()

        source_row = QHBoxLayout()
        source_row.addWidget(self.source_path)
        source_row.addWidget(self.btn_browse_source)

        key_row = QHBoxLayout()
        key_row.addWidget(self.key_path)
        key_row.addWidget(self.btn_browse_key)

        self.form = QFormLayout()
        self.form.addRow("", source_row)
        self.form.addRow("", self.remote_host)
        self.form.addRow("", self.remote_user)
        self.form.addRow("", key_row)
        self.form.addRow("", self.remote_dest)

        btn_row = QHBoxLayout()
        btn_row.addWidget(self.cb_dry)
        btn_row.addStretch(1)
        btn_row.addWidget(self.btn_deploy)

        root = QVBoxLayout(self)
        root.addLayout(self.form)
        root.addLayout(btn_row)
        root.addWidget(self.lbl_console)
        root.addWidget(self.console, 1)

        self.runner = DeploymentRunner(self, self.store, process_runner or SubprocessRunner())
        self.runner.on_busy_changed(self._on_busy_changed)

        self.retranslate_ui()
        self.set_config(self.store.load(self.config()))

    def retranslate_ui(self) -> None:
        labels = ["deploy.source", "deploy.host", "deploy.user", "deploy.key", "deploy.dest"]
        for row, key in enumerate(labels):
            item = self.form.itemAt(row, QFormLayout.ItemRole.LabelRole)
            if item is not None and item.widget() is not None:
                item.widget().setText(t(key))
        self.btn_browse_source.setText(t("deploy.browse"))
        self.btn_browse_key.setText(t("deploy.browse"))
        self.cb_dry.setText(t("deploy.dry_run"))
        self.btn_deploy.setText(t("deploy.button"))
        self.lbl_console.setText(t("deploy.log_title"))

    # ---- form <-> config
    def config(self) -> DeployConfig:
        return DeployConfig(
            source_path=self.source_path.text(),
            remote_host=self.remote_host.text(),
            remote_user=self.remote_user.text(),
            key_path=self.key_path.text(),
            remote_dest=self.remote_dest.text(),
        )

    def set_config(self, cfg: DeployConfig) -> None:
        self.source_path.setText(cfg.source_path)
        self.remote_host.setText(cfg.remote_host)
        self.remote_user.setText(cfg.remote_user)
        self.key_path.setText(cfg.key_path)
        self.remote_dest.setText(cfg.remote_dest)

    # ---- pickers (no validation here; deploy validates)
    def pick_source(self) -> None:
        path = QFileDialog.getExistingDirectory(self, t("deploy.pick_source"), self.source_path.text())
        if path:
            self.source_path.setText(path)

    def pick_key(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, t("deploy.pick_key"), self.key_path.text())
        if path:
            self.key_path.setText(path)

    # ---- deploy
    def deploy_clicked(self) -> None:
        runner = DryRunProcessRunner(self._log_dry_run) if self.cb_dry.isChecked() else None
        try:
            self.runner.deploy(self.config(), runner)
        except Exception as e:
            self.log(t("run.failed", error=e))
            show_exception(self, e, title=t("notify.error_title"))

    def _log_dry_run(self, cmd: str) -> None:
        self.log(t("run.dry_run", cmd=cmd))

    def _on_busy_changed(self, busy: bool) -> None:
        self.btn_deploy.setEnabled(not busy)
        if busy:
            # the remote steps block the event loop; paint the disabled button first
            QApplication.processEvents()

    # ---- DeployView protocol
    def log(self, message: str) -> None:
        # Guard against "Internal C++ object already deleted" while closing.
        try:
            if not shiboken6.isValid(self.console):
                return
        except RuntimeError:
            return
        stamp = datetime.now().strftime("%H:%M:%S")
        self.console.appendPlainText(f"[{stamp}] {message}")
        self.console.moveCursor(QTextCursor.MoveOperation.End)
        self.console.ensureCursorVisible()

    def confirm(self, title: str, message: str) -> bool:
        answer = QMessageBox.warning(
            self,
            title,
            message,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        return answer == QMessageBox.StandardButton.Yes

    def warn(self, title: str, message: str) -> None:
        QMessageBox.warning(self, title, message)

    def notify_success(self, title: str, message: str) -> None:
        QMessageBox.information(self, title, message)

    def notify_error(self, title: str, message: str) -> None:
        QMessageBox.critical(self, title, message)
