"""
UI Module - User Interface Components
=====================================
Contains all PyQt6 UI components for the Watermark Pro application.

Architecture:
- widgets.py: Reusable UI components
- watermark_tab.py: Image list, watermark controls and live preview
- main_window.py: Main application window
"""

from .main_window import MainWindow
from .watermark_tab import WatermarkTab, TransparencyGridWidget
from .widgets import (
    ColorButton, DragDropLabel, ImageListWidget, NoWheelSlider, PositionGrid
)

__all__ = [
    "ColorButton",
    "DragDropLabel",
    "ImageListWidget",
    "NoWheelSlider",
    "PositionGrid",
    "TransparencyGridWidget",
    "WatermarkTab",
    "MainWindow",
]
