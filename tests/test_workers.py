"""
Test script for worker threads.

Run with: python tests/test_workers.py
Or: python -m pytest tests/test_workers.py -v
"""

import io
import os
import sys
import tempfile
import time
import zipfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Headless Qt for CI
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PIL import Image
import numpy as np

from PyQt6.QtWidgets import QApplication
from PyQt6.QtCore import QEventLoop, QTimer

from app.core import ARCHIVE_NAME, DEFAULT_OPTIONS, ImageItem
from app.ui import MainWindow
from app.workers import (
    ExportWorker, ExportConfig, ExportResult,
    PreviewWorker, PreviewConfig, PreviewManager
)

# Global QApplication instance
_app = None


def get_app():
    """Get or create QApplication instance."""
    global _app
    if _app is None:
        _app = QApplication.instance() or QApplication(sys.argv)
    return _app


def create_test_item(name: str = "photo.png", width: int = 320, height: int = 240) -> ImageItem:
    """Create a simple gradient image item."""
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[..., 0] = np.linspace(0, 255, width, dtype=np.float32).astype(np.uint8)[np.newaxis, :]
    arr[..., 1] = np.linspace(0, 255, height, dtype=np.float32).astype(np.uint8)[:, np.newaxis]
    arr[..., 2] = 128

    buffer = io.BytesIO()
    Image.fromarray(arr).save(buffer, format="PNG")
    return ImageItem(name=name, data=buffer.getvalue(), mime_type="image/png")


def wait_for_signal(signal, trigger=None, timeout_ms: int = 30000):
    """
    Wait for a Qt signal with timeout.

    The signal is connected before trigger() runs, so an early emission
    cannot be missed.

    Returns:
        (fired, value): whether the signal fired, and the value it carried.
    """
    get_app()
    loop = QEventLoop()
    result = {"fired": False, "value": None}

    def on_signal(*args):
        result["fired"] = True
        result["value"] = args[0] if len(args) == 1 else args
        loop.quit()

    signal.connect(on_signal)

    # Setup timeout
    timer = QTimer()
    timer.setSingleShot(True)
    timer.timeout.connect(loop.quit)
    timer.start(timeout_ms)

    if trigger is not None:
        trigger()
    if not result["fired"]:
        loop.exec()
    timer.stop()
    signal.disconnect(on_signal)

    return result["fired"], result["value"]


# ===== Export =====

def test_export_worker_writes_archive():
    """ExportWorker writes one zip with every image and reports progress."""
    print("\n" + "=" * 50)
    print("Testing ExportWorker - Success")
    print("=" * 50)

    get_app()
    items = [create_test_item(f"image_{i}.png") for i in range(3)]

    with tempfile.TemporaryDirectory() as directory:
        output_path = Path(directory) / "out" / ARCHIVE_NAME
        worker = ExportWorker(ExportConfig(
            items=items,
            options=DEFAULT_OPTIONS.replace(noise_level=0.1),
            output_path=output_path
        ))

        # Track progress
        progress_log = []
        errors = []
        worker.progress.connect(lambda c, t, f: progress_log.append((c, t, f)))
        worker.error.connect(errors.append)

        fired, result = wait_for_signal(worker.finished_export, worker.start)
        worker.wait()

        assert fired, "Worker timed out"
        assert not errors, f"Unexpected error: {errors}"
        assert isinstance(result, ExportResult)
        assert result.output_path == output_path
        assert result.entry_names == [item.name for item in items]
        assert result.size_bytes == output_path.stat().st_size

        with zipfile.ZipFile(output_path) as archive:
            assert archive.namelist() == [item.name for item in items]

        assert sorted(c for c, _, _ in progress_log) == [1, 2, 3]
        assert all(t == 3 for _, t, _ in progress_log)

        print(f"✅ Archive written: {result.size_bytes} bytes")
        print(f"   Progress log: {progress_log}")


def test_export_worker_failure():
    """A broken image fails the export and leaves no archive behind."""
    print("\n" + "=" * 50)
    print("Testing ExportWorker - Failure")
    print("=" * 50)

    get_app()
    items = [
        create_test_item("good.png"),
        ImageItem("broken.png", b"not an image", "image/png"),
    ]

    with tempfile.TemporaryDirectory() as directory:
        output_path = Path(directory) / ARCHIVE_NAME
        worker = ExportWorker(ExportConfig(items=items, output_path=output_path))

        finished = []
        worker.finished_export.connect(finished.append)

        fired, message = wait_for_signal(worker.error, worker.start)
        worker.wait()

        assert fired, "Worker timed out"
        assert "broken.png" in message
        assert not finished
        assert not output_path.exists(), "No archive should be written"

        print(f"✅ Export failed as expected: {message}")


def test_export_worker_empty():
    """Exporting nothing reports an error."""
    get_app()
    worker = ExportWorker(ExportConfig(items=[]))
    fired, message = wait_for_signal(worker.error, worker.start)
    worker.wait()
    assert fired
    assert message == "No images to export"


# ===== Preview =====

def test_preview_worker_native_resolution():
    """PreviewWorker renders at the source image's size."""
    print("\n" + "=" * 50)
    print("Testing PreviewWorker")
    print("=" * 50)

    get_app()
    worker = PreviewWorker(PreviewConfig(item=create_test_item(width=640, height=360)))
    fired, image = wait_for_signal(worker.preview_ready, worker.start)
    worker.wait()

    assert fired, "Worker timed out"
    assert not image.isNull()
    assert (image.width(), image.height()) == (640, 360)

    print("✅ Preview rendered at 640x360")


def test_preview_worker_swallows_decode_errors():
    """Undecodable items produce neither a preview nor an error."""
    get_app()
    worker = PreviewWorker(PreviewConfig(item=ImageItem("broken.png", b"junk", "image/png")))

    emitted = []
    worker.preview_ready.connect(emitted.append)
    worker.preview_error.connect(emitted.append)

    fired, _ = wait_for_signal(worker.finished, worker.start)
    worker.wait()
    get_app().processEvents()

    assert fired, "Worker timed out"
    assert not emitted, f"Unexpected signals: {emitted}"


def test_preview_manager():
    """PreviewManager debounces requests and clears when nothing is selected."""
    print("\n" + "=" * 50)
    print("Testing PreviewManager")
    print("=" * 50)

    get_app()
    manager = PreviewManager(debounce_ms=10)
    item = create_test_item()

    def burst():
        for opacity in (0.1, 0.2, 0.3):
            manager.request_preview(PreviewConfig(item, DEFAULT_OPTIONS.replace(opacity=opacity)))

    fired, image = wait_for_signal(manager.preview_updated, burst)
    assert fired, "Preview timed out"
    assert (image.width(), image.height()) == (320, 240)

    fired, _ = wait_for_signal(
        manager.preview_cleared,
        lambda: manager.request_preview(PreviewConfig(item=None))
    )
    assert fired, "Clearing should be immediate"
    assert manager.wait_idle()

    print("✅ PreviewManager OK")


# ===== Controller =====

def wait_until(predicate, timeout_s: float = 30.0) -> bool:
    """Pump the event loop until predicate() is true or the timeout passes."""
    app = get_app()
    deadline = time.monotonic() + timeout_s
    while not predicate():
        if time.monotonic() > deadline:
            return False
        app.processEvents()
        time.sleep(0.01)
    return True


def test_controller_busy_flag():
    """A running export blocks a second one and the busy flag clears after a failure."""
    print("\n" + "=" * 50)
    print("Testing Controller Busy Flag")
    print("=" * 50)

    from main import WatermarkController

    get_app()
    window = MainWindow()
    errors = []
    # Modal dialogs would block the test
    window.show_error = lambda title, message: errors.append(message)
    controller = WatermarkController(window)
    tab = window.watermark_tab

    try:
        with tempfile.TemporaryDirectory() as directory:
            good = Path(directory) / "good.png"
            good.write_bytes(create_test_item().data)
            broken = Path(directory) / "broken.png"
            broken.write_bytes(b"not an image")

            controller.add_files([good, broken])
            assert len(controller.collection) == 2
            assert controller.collection.selected_index == 0
            assert tab.export_btn.isEnabled()

            output_path = Path(directory) / ARCHIVE_NAME
            controller.start_export(output_path)
            worker = controller._export_worker
            assert worker is not None
            assert controller.is_processing
            assert not tab.export_btn.isEnabled()

            # Re-entrant request while busy is ignored
            controller.start_export(output_path)
            assert controller._export_worker is worker

            assert wait_until(lambda: not controller.is_processing), "Export timed out"

            assert controller._export_worker is None
            assert tab.export_btn.isEnabled()
            assert errors, "A failure notice should be shown"
            assert not output_path.exists()
    finally:
        controller.shutdown()
        window.deleteLater()

    print("✅ Busy flag cleared after failed export")


def main():
    """Run all tests."""
    print("🧪 Watermark Pro Worker Tests")
    print("=" * 50)

    tests = [
        ("Export Success", test_export_worker_writes_archive),
        ("Export Failure", test_export_worker_failure),
        ("Export Empty", test_export_worker_empty),
        ("Preview Worker", test_preview_worker_native_resolution),
        ("Preview Decode Error", test_preview_worker_swallows_decode_errors),
        ("Preview Manager", test_preview_manager),
        ("Controller Busy Flag", test_controller_busy_flag),
    ]

    results = []
    for name, test in tests:
        try:
            test()
            results.append((name, True))
        except Exception as e:
            print(f"❌ {name} failed: {e}")
            import traceback
            traceback.print_exc()
            results.append((name, False))

    # Summary
    print("\n" + "=" * 50)
    print("Test Summary")
    print("=" * 50)

    passed = sum(1 for _, r in results if r)
    total = len(results)

    for name, result in results:
        status = "✅ PASS" if result else "❌ FAIL"
        print(f"  {name}: {status}")

    print(f"\nTotal: {passed}/{total} tests passed")

    return passed == total


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
