"""
Workers Module - Async Thread Management
========================================
Contains QThread workers for non-blocking image processing.

All heavy computations run in separate threads to keep the UI responsive.

Components:
- ExportWorker: Batch watermarking packed into one zip archive
- PreviewWorker: Live preview rendering with debounce
"""

from .export_worker import ExportWorker, ExportConfig, ExportResult
from .preview_worker import (
    PreviewWorker, PreviewConfig, PreviewDebouncer, PreviewManager,
    pil_image_to_qimage
)

__all__ = [
    # Export
    "ExportWorker",
    "ExportConfig",
    "ExportResult",
    # Preview
    "PreviewWorker",
    "PreviewConfig",
    "PreviewDebouncer",
    "PreviewManager",
    "pil_image_to_qimage",
]
