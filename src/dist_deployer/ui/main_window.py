from PySide6.QtGui import QAction, QActionGroup
from PySide6.QtWidgets import QMainWindow, QMenu, QTabWidget

from dist_deployer.core.i18n import current_language, set_language, t
from dist_deployer.core.logging import get_logger
from .widgets.deploy_widget import DeployWidget
from .widgets.logs_widget import LogsWidget


class MainWindow(QMainWindow):
    def __init__(self, deploy_widget: DeployWidget = None):
        super().__init__()
        self._shutdown_done = False
        self.resize(760, 620)

        self.tabs = QTabWidget()
        self.setCentralWidget(self.tabs)

        self.deploy = deploy_widget if deploy_widget is not None else DeployWidget()
        self.logs = LogsWidget()
        self.tabs.addTab(self.deploy, "")
        self.tabs.addTab(self.logs, "")

        self._init_language_menu()
        self.retranslate_ui()

    def _init_language_menu(self):
        self._lang_menu = QMenu(self)
        self.menuBar().addMenu(self._lang_menu)

        group = QActionGroup(self)
        group.setExclusive(True)
        self._act_tr = QAction(self)
        self._act_en = QAction(self)
        for act, lang in ((self._act_tr, "tr"), (self._act_en, "en")):
            act.setCheckable(True)
            group.addAction(act)
            self._lang_menu.addAction(act)
            act.triggered.connect(lambda _checked=False, lang=lang: self._switch_language(lang))

    def _switch_language(self, lang: str):
        set_language(lang)
        self.retranslate_ui()

    def retranslate_ui(self):
        self.setWindowTitle(t("app.title"))
        self.tabs.setTabText(self.tabs.indexOf(self.deploy), t("tabs.deploy"))
        self.tabs.setTabText(self.tabs.indexOf(self.logs), t("tabs.logs"))

        self._lang_menu.setTitle(t("language.menu_title"))
        self._act_tr.setText(t("language.turkish"))
        self._act_en.setText(t("language.english"))
        self._act_tr.setChecked(current_language() == "tr")
        self._act_en.setChecked(current_language() == "en")

        for w in (self.deploy, self.logs):
            w.retranslate_ui()

    def graceful_shutdown(self) -> None:
        """Idempotent; called from closeEvent and QApplication.aboutToQuit."""
        if self._shutdown_done:
            return
        self._shutdown_done = True
        self.logs.stop()
        get_logger().info("graceful shutdown completed")

    def closeEvent(self, event):
        self.graceful_shutdown()
        super().closeEvent(event)
