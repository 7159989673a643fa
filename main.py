"""
Watermark Pro - Main Entry Point
================================
A desktop application that stamps a text watermark and optional noise onto
a batch of images and downloads them as one zip archive.

Usage:
    python main.py

Architecture:
    - Model: app/core/ (pure algorithms)
    - View: app/ui/ (PyQt6 interface)
    - Controller: This file (signal/slot connections)

Features:
    - Text watermark with size, colour, opacity and 3x3 placement
    - Per-channel noise with adjustable strength
    - Real-time preview with debounce
    - Concurrent batch export into a single zip
"""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import QApplication, QFileDialog

from app.core import ARCHIVE_NAME, DEFAULT_OPTIONS, ImageCollection, ImageItem, WatermarkOptions
from app.ui import MainWindow
from app.workers import ExportConfig, ExportResult, ExportWorker, PreviewConfig, PreviewManager

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "WATERMARK_LOG_LEVEL"


class WatermarkController:
    """
    Controller class that connects UI signals to worker threads.

    Responsibilities:
    - Own the image list, the selection and the current options
    - Keep the view in sync with that state
    - Create and manage preview and export workers
    - Handle errors and display appropriate messages
    """

    def __init__(self, main_window: MainWindow, options: WatermarkOptions = DEFAULT_OPTIONS):
        """
        Initialize the controller.

        Args:
            main_window: The main application window.
            options: Initial watermark options.
        """
        self.window = main_window
        self.tab = main_window.watermark_tab

        self.collection = ImageCollection()
        self.options = options
        self.is_processing = False

        self._preview_manager = PreviewManager(parent=self.tab)
        # Worker reference (to prevent garbage collection)
        self._export_worker: Optional[ExportWorker] = None

        self._connect_signals()
        self.tab.set_options(self.options)
        self._sync_items()

    def _connect_signals(self):
        """Connect UI signals to controller slots."""
        self.tab.files_added.connect(self.add_files)
        self.tab.remove_requested.connect(self.remove_image)
        self.tab.clear_requested.connect(self.clear_images)
        self.tab.item_selected.connect(self.select_image)
        self.tab.option_changed.connect(self.update_option)
        self.tab.export_requested.connect(self.export)

        self._preview_manager.preview_started.connect(self.tab.show_preview_loading)
        self._preview_manager.preview_updated.connect(self.tab.show_preview)
        self._preview_manager.preview_error.connect(self.tab.show_preview_error)
        self._preview_manager.preview_cleared.connect(self.tab.clear_preview)

        self.window.set_close_handler(self.shutdown)

    # ===== Image List Operations =====

    def add_files(self, paths: List[Path]):
        """Read the dropped or picked files and append them to the list."""
        items = []
        for path in paths:
            try:
                items.append(ImageItem.from_path(path))
            except OSError as e:
                logger.warning("Skipping unreadable file %s: %s", path, e)

        if not items:
            return

        self.collection.add(items)
        logger.info("Added %d images (%d total)", len(items), len(self.collection))
        self._sync_items()
        self.window.show_message(f"Added {len(items)} image(s)")

    def remove_image(self, index: int):
        try:
            removed = self.collection.remove(index)
        except IndexError:
            logger.warning("Ignoring removal of unknown index %d", index)
            return
        logger.debug("Removed %s", removed.name)
        self._sync_items()

    def clear_images(self):
        self.collection.clear()
        self._sync_items()

    def select_image(self, index: int):
        if index == self.collection.selected_index:
            return
        try:
            self.collection.select(index)
        except IndexError:
            logger.warning("Ignoring selection of unknown index %d", index)
            return
        self._request_preview()

    def _sync_items(self):
        self.tab.set_items(self.collection.items, self.collection.selected_index)
        self._request_preview()

    # ===== Options =====

    def update_option(self, key: str, value):
        """
        Apply a single option change coming from the UI.

        Invalid values keep the previous options in force.
        """
        try:
            self.options = self.options.replace(**{key: value})
        except (TypeError, ValueError) as e:
            logger.debug("Ignoring invalid value for %s: %r (%s)", key, value, e)
            return

        if key == "color":
            self.tab.color_button.set_color(self.options.color)
        self._request_preview()

    def _request_preview(self):
        self._preview_manager.request_preview(
            PreviewConfig(item=self.collection.selected_item, options=self.options)
        )

    # ===== Export Operations =====

    def export(self):
        """Ask where to save, then start the export worker."""
        if not len(self.collection) or self.is_processing:
            return

        path, _ = QFileDialog.getSaveFileName(
            self.window,
            "Save archive",
            str(Path.cwd() / ARCHIVE_NAME),
            "Zip archive (*.zip)"
        )
        if not path:
            return

        self.start_export(Path(path))

    def start_export(self, output_path: Path):
        """Start exporting the current list with a snapshot of the options."""
        if not len(self.collection) or self.is_processing:
            return

        config = ExportConfig(
            items=list(self.collection.items),
            options=self.options,
            output_path=output_path
        )

        self._export_worker = ExportWorker(config)
        self._export_worker.progress.connect(self._on_export_progress)
        self._export_worker.finished_export.connect(self._on_export_finished)
        self._export_worker.error.connect(self._on_export_error)
        self._export_worker.finished.connect(self._on_export_worker_done)

        self._set_processing(True)
        self.tab.set_status("Processing...")
        self.window.show_message(f"Exporting {len(config.items)} image(s)...", 0)

        self._export_worker.start()

    def _set_processing(self, is_processing: bool):
        self.is_processing = is_processing
        self.tab.set_busy(is_processing)

    def _on_export_progress(self, current: int, total: int, filename: str):
        self.tab.set_progress(current, total)
        self.window.show_message(f"Processed: {filename} ({current}/{total})", 0)

    def _on_export_finished(self, result: ExportResult):
        count = len(result.entry_names)
        self.tab.set_status(f"✓ Saved {count} image(s)", success=True)
        self.window.show_message(f"Saved {result.output_path}", 5000)

    def _on_export_error(self, error_message: str):
        logger.error("Export failed: %s", error_message)
        self.tab.set_status("✕ Export failed", success=False)
        self.window.show_message("Export failed", 3000)
        self.window.show_error(
            "Export failed",
            "An error occurred while processing the images. Please try again."
        )

    def _on_export_worker_done(self):
        """Clear the busy flag whatever the outcome."""
        self._set_processing(False)
        if self._export_worker:
            self._export_worker.deleteLater()
            self._export_worker = None

    # ===== Shutdown =====

    def shutdown(self):
        """Stop preview work and wait for a running export before exit."""
        self._preview_manager.cancel()
        self._preview_manager.wait_idle()
        if self._export_worker is not None and self._export_worker.isRunning():
            logger.info("Waiting for the running export to finish")
            self._export_worker.wait()


def configure_logging():
    level_name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def main():
    """Application entry point."""
    configure_logging()

    # Create application
    app = QApplication(sys.argv)
    app.setApplicationName(MainWindow.APP_NAME)
    app.setApplicationVersion(MainWindow.APP_VERSION)

    # Set application-wide font
    font = QFont()
    font.setPointSize(10)
    app.setFont(font)

    # Create main window
    window = MainWindow()

    # Create controller (connects signals)
    controller = WatermarkController(window)

    # Show window
    window.show()

    # Run event loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
