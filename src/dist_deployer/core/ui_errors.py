from __future__ import annotations

from typing import Optional

from PySide6.QtWidgets import QMessageBox

from dist_deployer.core.debug_support import ErrorId, log_exception_with_id
from dist_deployer.core.i18n import t
from dist_deployer.services.deployer import failure_area


def with_error_code(message: str, err_id: ErrorId) -> str:
    return f"{message}\n\n{t('common.error_code')}: {err_id}"


def show_exception(parent, exc: BaseException, *, title: Optional[str] = None) -> ErrorId:
    """Log `exc` under an id tagged with the deploy step it came from and show it."""
    err_id = log_exception_with_id(failure_area(exc), exc)
    QMessageBox.critical(parent, title or t("common.error"), with_error_code(t("run.failed", error=exc), err_id))
    return err_id
