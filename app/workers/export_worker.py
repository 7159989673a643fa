"""
Export Worker - Async Batch Export
==================================
QThread worker that watermarks every image and writes one zip archive.

Workflow:
1. Take the options snapshot captured when export was requested
2. Process all images concurrently, one surface per image
3. Emit a progress signal as each image finishes
4. Pack the results and write the archive to the output path

The batch is all-or-nothing: if any image fails, no archive is written
and the error signal is emitted instead.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from PyQt6.QtCore import QMutex, QMutexLocker, QThread, pyqtSignal

from app.core.archive import ARCHIVE_NAME
from app.core.items import ImageItem
from app.core.options import DEFAULT_OPTIONS, WatermarkOptions
from app.core.pipeline import export_archive

logger = logging.getLogger(__name__)


@dataclass
class ExportConfig:
    """Complete configuration for one export run."""
    items: List[ImageItem] = field(default_factory=list)
    options: WatermarkOptions = DEFAULT_OPTIONS
    output_path: Path = field(default_factory=lambda: Path.cwd() / ARCHIVE_NAME)


@dataclass
class ExportResult:
    """Result of a successful export."""
    output_path: Path
    entry_names: List[str] = field(default_factory=list)
    size_bytes: int = 0


class ExportWorker(QThread):
    """
    Worker thread for exporting watermarked images as an archive.

    Signals:
        progress(int, int, str): (finished, total, last_finished_file_name)
        finished_export(ExportResult): Emitted when the archive is written
        error(str): Emitted when the export fails
    """

    # Signals
    progress = pyqtSignal(int, int, str)  # finished, total, filename
    finished_export = pyqtSignal(object)  # ExportResult
    error = pyqtSignal(str)  # Error message

    def __init__(self, config: ExportConfig, parent=None):
        """
        Initialize the export worker.

        Args:
            config: ExportConfig with the items and the options snapshot.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self.config = config
        self._finished_count = 0
        self._count_lock = QMutex()

    def _on_item_done(self, filename: str):
        # Called from pool threads; signal emission is queued to the receiver
        with QMutexLocker(self._count_lock):
            self._finished_count += 1
            finished = self._finished_count
        self.progress.emit(finished, len(self.config.items), filename)

    def run(self):
        """
        Main worker execution.

        Builds the archive and writes it, or emits error on any failure.
        """
        total = len(self.config.items)
        if total == 0:
            self.error.emit("No images to export")
            return

        self._finished_count = 0
        logger.info("Exporting %d images to %s", total, self.config.output_path)

        try:
            archive = export_archive(
                self.config.items,
                self.config.options,
                on_item_done=self._on_item_done
            )

            output_path = Path(self.config.output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(archive)

        except Exception as e:
            logger.exception("Export failed")
            self.error.emit(str(e))
            return

        result = ExportResult(
            output_path=output_path,
            entry_names=list(dict.fromkeys(item.name for item in self.config.items)),
            size_bytes=len(archive)
        )
        self.finished_export.emit(result)
