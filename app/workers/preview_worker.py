"""
Preview Worker - Live Watermark Preview
=======================================

Renders the selected image with the current watermark options off the
UI thread.

RENDERING:
----------
- The preview surface is allocated at the image's NATIVE resolution,
  exactly like the export path, so noise grain and text size match the
  final output. The widget scales the result for display.
- Every run starts from a freshly cleared surface: nothing accumulates
  across re-renders.

ERRORS:
-------
Decode failures on the preview path are swallowed (logged at debug level,
no signal). Any other failure is reported through preview_error.

DEBOUNCE:
---------
Slider drags fire dozens of change events per second. PreviewDebouncer
collapses them and PreviewManager keeps at most one live worker.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from PIL import Image
from PyQt6.QtCore import QThread, pyqtSignal, QTimer, QObject, QMutex, QMutexLocker
from PyQt6.QtGui import QImage

from app.core.errors import DecodeError
from app.core.items import ImageItem
from app.core.options import DEFAULT_OPTIONS, WatermarkOptions
from app.core.pipeline import render_item
from app.core.watermark import TextWatermarker

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class PreviewConfig:
    """What to preview: one item and the options to render it with."""
    item: Optional[ImageItem] = None
    options: WatermarkOptions = DEFAULT_OPTIONS


def pil_image_to_qimage(pil_image: Image.Image) -> QImage:
    """
    Convert PIL Image to QImage.

    IMPORTANT: Returns a copy so the QImage owns its data,
    preventing crashes from garbage-collected PIL buffers.
    QImage (unlike QPixmap) is safe to build outside the GUI thread.
    """
    if pil_image.mode != "RGBA":
        pil_image = pil_image.convert("RGBA")

    data = pil_image.tobytes("raw", "RGBA")
    qimage = QImage(
        data,
        pil_image.width,
        pil_image.height,
        pil_image.width * 4,  # bytes per line
        QImage.Format.Format_RGBA8888
    )
    return qimage.copy()


# =============================================================================
# PREVIEW WORKER
# =============================================================================

class PreviewWorker(QThread):
    """
    Worker thread for rendering one watermark preview.

    THREAD SAFETY:
    - Uses `_is_cancelled` flag for cooperative cancellation
    - Checks cancellation between pipeline steps
    - Never blocks the UI thread

    SIGNALS:
    - preview_ready(QImage): Emitted when the preview is rendered
    - preview_error(str): Emitted on non-decode errors
    """

    preview_ready = pyqtSignal(object)
    preview_error = pyqtSignal(str)

    def __init__(self, config: PreviewConfig, watermarker: Optional[TextWatermarker] = None,
                 parent=None):
        super().__init__(parent)
        self.config = config
        self._watermarker = watermarker or TextWatermarker()
        self._is_cancelled = False

    def cancel(self):
        """Request cancellation of this worker."""
        self._is_cancelled = True

    def run(self):
        """Render the configured item and emit the result."""
        if self._is_cancelled or self.config.item is None:
            return

        try:
            surface = render_item(
                self.config.item,
                self.config.options,
                watermarker=self._watermarker
            )

            if self._is_cancelled:
                return

            self.preview_ready.emit(pil_image_to_qimage(surface.to_image()))

        except DecodeError as e:
            logger.debug("Preview skipped: %s", e)

        except Exception as e:
            if not self._is_cancelled:
                logger.exception("Preview rendering failed")
                self.preview_error.emit(f"Preview failed: {e}")


# =============================================================================
# DEBOUNCER (Prevents Event Storm)
# =============================================================================

class PreviewDebouncer(QObject):
    """
    Debounce helper for preview requests.

    Only the LAST request within the debounce window actually fires.
    """

    preview_requested = pyqtSignal(object)

    def __init__(self, delay_ms: int = 50, parent=None):
        super().__init__(parent)
        self._delay_ms = delay_ms
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)
        self._pending_config: Optional[PreviewConfig] = None
        self._mutex = QMutex()

    def request_preview(self, config: PreviewConfig):
        """
        Request a preview generation (debounced).

        Multiple rapid calls will be collapsed into a single call
        after the debounce delay.
        """
        with QMutexLocker(self._mutex):
            self._pending_config = config
            self._timer.stop()
            self._timer.start(self._delay_ms)

    def cancel(self):
        """Cancel any pending preview request."""
        with QMutexLocker(self._mutex):
            self._timer.stop()
            self._pending_config = None

    def _on_timeout(self):
        """Timer fired - emit the pending request."""
        with QMutexLocker(self._mutex):
            config = self._pending_config
            self._pending_config = None
        if config is not None:
            self.preview_requested.emit(config)


# =============================================================================
# PREVIEW MANAGER (High-Level Controller)
# =============================================================================

class PreviewManager(QObject):
    """
    High-level manager for preview generation.

    RESPONSIBILITIES:
    1. Debounce incoming requests (via PreviewDebouncer)
    2. Retire the running worker when a new request arrives
    3. Forward signals to the UI

    USAGE:
        manager = PreviewManager(debounce_ms=50)
        manager.preview_updated.connect(on_preview_ready)
        manager.request_preview(config)
    """

    preview_updated = pyqtSignal(object)  # QImage
    preview_error = pyqtSignal(str)
    preview_started = pyqtSignal()
    preview_cleared = pyqtSignal()

    def __init__(self, debounce_ms: int = 50, parent=None):
        super().__init__(parent)

        self._debouncer = PreviewDebouncer(debounce_ms, self)
        self._debouncer.preview_requested.connect(self._start_preview_worker)

        self._current_worker: Optional[PreviewWorker] = None
        # Cancelled workers still running; kept referenced until they finish
        self._retired_workers: List[PreviewWorker] = []
        self._mutex = QMutex()

    def request_preview(self, config: PreviewConfig):
        """
        Request a preview generation.

        A config without an item clears the preview instead.
        """
        if config.item is None:
            self.clear()
            return
        self._debouncer.request_preview(config)

    def cancel(self):
        """Cancel all pending and in-progress preview work."""
        self._debouncer.cancel()
        self._retire_current_worker()

    def clear(self):
        """Cancel any preview work and tell subscribers there is nothing to show."""
        self.cancel()
        self.preview_cleared.emit()

    def _retire_current_worker(self):
        """Cancel the current worker and stop listening to it."""
        with QMutexLocker(self._mutex):
            worker = self._current_worker
            self._current_worker = None

        if worker is None:
            return

        worker.cancel()
        try:
            worker.preview_ready.disconnect()
            worker.preview_error.disconnect()
        except (TypeError, RuntimeError):
            pass  # Already disconnected

        if worker.isRunning():
            self._retired_workers.append(worker)
        else:
            worker.deleteLater()

    def _start_preview_worker(self, config: PreviewConfig):
        """Start a new preview worker, retiring the previous one first."""
        self._retire_current_worker()

        self.preview_started.emit()

        worker = PreviewWorker(config)
        worker.preview_ready.connect(self._on_preview_ready)
        worker.preview_error.connect(self._on_preview_error)
        worker.finished.connect(lambda w=worker: self._on_worker_finished(w))

        with QMutexLocker(self._mutex):
            self._current_worker = worker
        worker.start()

    def _on_preview_ready(self, image: QImage):
        """Forward preview result to subscribers."""
        self.preview_updated.emit(image)

    def _on_preview_error(self, error: str):
        """Forward preview error to subscribers."""
        self.preview_error.emit(error)

    def _on_worker_finished(self, worker: PreviewWorker):
        """Cleanup a worker after completion."""
        with QMutexLocker(self._mutex):
            if worker is self._current_worker:
                self._current_worker = None

        if worker in self._retired_workers:
            self._retired_workers.remove(worker)
        worker.deleteLater()

    def wait_idle(self, timeout_ms: int = 5000) -> bool:
        """Block until no worker is running. Used on shutdown."""
        workers = list(self._retired_workers)
        if self._current_worker is not None:
            workers.append(self._current_worker)
        return all(worker.wait(timeout_ms) for worker in workers)
