"""Application factory — QCoreApplication creation and logging setup."""

from __future__ import annotations

import logging
import sys

from PyQt6.QtCore import QCoreApplication, QtMsgType, qInstallMessageHandler

from lumina.constants import APP_NAME, APP_ORGANIZATION, APP_VERSION

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_qt_logger = logging.getLogger("lumina.qt")


def _qt_message_handler(msg_type, context, message):
    """Route Qt warnings into the logging tree."""
    if msg_type == QtMsgType.QtDebugMsg:
        _qt_logger.debug(message)
    elif msg_type == QtMsgType.QtWarningMsg:
        _qt_logger.warning(message)
    elif msg_type in (QtMsgType.QtCriticalMsg, QtMsgType.QtFatalMsg):
        _qt_logger.error(message)
    else:
        _qt_logger.info(message)


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install a stderr handler on the root logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def create_application(argv: list[str]) -> QCoreApplication:
    """Create (or reuse) the Qt application instance."""
    qInstallMessageHandler(_qt_message_handler)

    app = QCoreApplication.instance() or QCoreApplication(argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_ORGANIZATION)
    app.setApplicationVersion(APP_VERSION)
    return app
