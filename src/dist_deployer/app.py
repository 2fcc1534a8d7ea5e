import logging
import sys

from PySide6.QtWidgets import QApplication

from dist_deployer.core.debug_support import install_excepthook, log_startup_snapshot
from dist_deployer.core.i18n import load_saved_language, validate_language_files
from dist_deployer.core.logging import setup_logging
from dist_deployer.ui.main_window import MainWindow


def main() -> int:
    app = QApplication(sys.argv)

    # Logging (file-backed, rotating). Must not crash the GUI.
    setup_logging(level=logging.INFO)
    install_excepthook()
    try:
        log_startup_snapshot()
    except Exception:
        logging.getLogger("dist_deployer").warning("startup snapshot failed", exc_info=True)

    validate_language_files()
    # English unless the user picked another language from the menu
    load_saved_language()

    w = MainWindow()
    app.aboutToQuit.connect(w.graceful_shutdown)
    w.show()
    return app.exec()
