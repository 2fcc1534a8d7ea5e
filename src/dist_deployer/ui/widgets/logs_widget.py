from __future__ import annotations

from PySide6.QtCore import QTimer
from PySide6.QtGui import QGuiApplication, QTextCursor
from PySide6.QtWidgets import QHBoxLayout, QLabel, QPlainTextEdit, QPushButton, QVBoxLayout, QWidget

from dist_deployer.core.i18n import t
from dist_deployer.core.logging import log_path

TAIL_CHARS = 8000


class LogsWidget(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("LogsWidget")

        self.lbl = QLabel()
        self.txt = QPlainTextEdit()
        self.txt.setReadOnly(True)

        self.btn_refresh = QPushButton()
        self.btn_refresh.clicked.connect(self.refresh)

        self.btn_copy = QPushButton()
        self.btn_copy.clicked.connect(self.copy_all)

        top = QHBoxLayout()
        top.addWidget(self.lbl)
        top.addStretch(1)
        top.addWidget(self.btn_copy)
        top.addWidget(self.btn_refresh)

        lay = QVBoxLayout(self)
        lay.addLayout(top)
        lay.addWidget(self.txt)

        # light auto-refresh
        self._timer = QTimer(self)
        self._timer.setInterval(1500)
        self._timer.timeout.connect(self.refresh)
        self._timer.start()

        self.retranslate_ui()
        self.refresh()

    def retranslate_ui(self) -> None:
        self.lbl.setText(t("logs.title"))
        self.btn_refresh.setText(t("logs.refresh"))
        self.btn_copy.setText(t("logs.copy"))

    def refresh(self) -> None:
        try:
            p = log_path()
            exists = p.exists()
        except OSError as e:
            self.txt.setPlainText(t("logs.unreadable", error=e))
            return
        if not exists:
            self.txt.setPlainText(t("logs.missing", path=p))
            return
        try:
            data = p.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            self.txt.setPlainText(t("logs.unreadable", error=e))
            return
        if len(data) > TAIL_CHARS:
            data = data[-TAIL_CHARS:]
        if data == self.txt.toPlainText():
            return
        self.txt.setPlainText(data)
        self.txt.moveCursor(QTextCursor.MoveOperation.End)

    def stop(self) -> None:
        self._timer.stop()

    def copy_all(self) -> None:
        QGuiApplication.clipboard().setText(self.txt.toPlainText())
