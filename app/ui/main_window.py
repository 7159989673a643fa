"""
Main Window
===========
Application shell: header, the watermark tab and a status bar.
"""

from typing import Optional

from PyQt6.QtCore import QTimer
from PyQt6.QtGui import QCloseEvent
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QLabel, QStatusBar, QMessageBox, QApplication
)

from .watermark_tab import WatermarkTab


class MainWindow(QMainWindow):
    """
    Top-level window hosting the WatermarkTab.

    Nothing is persisted between sessions: images and options live in
    memory only.
    """

    APP_NAME = "Watermark Pro"
    APP_VERSION = "1.0.0"
    READY_MESSAGE = "Ready"

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._close_handler = None

        self._setup_window()
        self._setup_ui()
        self._setup_statusbar()

    def _setup_window(self):
        self.setWindowTitle(self.APP_NAME)
        self.setMinimumSize(1100, 700)
        self.resize(1300, 820)

        # Center on screen
        screen = QApplication.primaryScreen()
        if screen:
            geo = screen.availableGeometry()
            self.move((geo.width() - self.width()) // 2, (geo.height() - self.height()) // 2)

    def _setup_ui(self):
        central = QWidget()
        central.setObjectName("centralContainer")
        self.setCentralWidget(central)

        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        title = QLabel(self.APP_NAME)
        title.setObjectName("appTitle")
        title.setStyleSheet("font-size: 22px; font-weight: bold; color: #2563EB; padding: 12px 16px 0;")
        layout.addWidget(title)

        subtitle = QLabel("Add your personal mark to your images.")
        subtitle.setStyleSheet("color: #6B7280; padding: 0 16px 4px;")
        layout.addWidget(subtitle)

        self.watermark_tab = WatermarkTab()
        layout.addWidget(self.watermark_tab, 1)

    def _setup_statusbar(self):
        self.statusbar = QStatusBar()
        self.setStatusBar(self.statusbar)

        self.status_label = QLabel(self.READY_MESSAGE)
        self.status_label.setObjectName("statusLabel")
        self.statusbar.addWidget(self.status_label)

        self.statusbar.addPermanentWidget(QLabel(f"v{self.APP_VERSION}"))

    # === Public API ===

    def set_close_handler(self, handler):
        """Register a callable run before the window closes."""
        self._close_handler = handler

    def show_message(self, message: str, timeout: int = 3000):
        """Show a message in the status bar."""
        self.status_label.setText(message)
        if timeout > 0:
            QTimer.singleShot(timeout, lambda: self.status_label.setText(self.READY_MESSAGE))

    def show_error(self, title: str, message: str):
        QMessageBox.critical(self, title, message)

    def closeEvent(self, event: QCloseEvent):
        if self._close_handler is not None:
            self._close_handler()
        event.accept()
