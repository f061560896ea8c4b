# audio_annote/app.py
from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from PyQt5.QtWidgets import QApplication, QFileDialog, QMessageBox

from .main_window import MainWindow

LOG_LEVEL_ENV = "AUDIO_ANNOTE_LOG_LEVEL"


def configure_logging(level: Optional[str] = None) -> None:
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def choose_root_dir(parent=None) -> Optional[str]:
    d = QFileDialog.getExistingDirectory(parent, "Select Data Root")
    return d or None


def run_app(audio_path: Optional[str] = None, root_dir: Optional[str] = None) -> int:
    configure_logging()
    app = QApplication(sys.argv)

    win = MainWindow(root_dir=root_dir)
    win.show()

    # If root not set, prompt once (non-blocking for main window usage)
    if not root_dir and not win.root_dir:
        QMessageBox.information(
            win,
            "Select Data Root",
            "Please choose a data root directory to store the label config.json.",
        )
        d = choose_root_dir(win)
        if d:
            win.set_root_dir(d)

    if audio_path:
        win.open_audio(audio_path)

    return app.exec_()
