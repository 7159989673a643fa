"""
Watermark Pro Application Package
=================================
A desktop tool that watermarks batches of images and exports them as a zip.

Modules:
    - core: Pure algorithm logic (no UI dependencies)
    - workers: QThread workers for async processing
    - ui: PyQt6 user interface components

Usage:
    from app.core import WatermarkOptions, render_item, export_archive
    from app.workers import ExportWorker, PreviewManager
    from app.ui import MainWindow
"""

__version__ = "1.0.0"
__app_name__ = "Watermark Pro"
