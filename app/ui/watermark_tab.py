"""
Watermark Tab - Three-Column Layout
===================================
Input -> Controls -> Preview.

Layout:
┌──────────────┬─────────────────────┬────────────────────────────────────────┐
│   INPUT      │      CONTROLS       │              PREVIEW                   │
│              │                     │                                        │
│  Drop zone   │  Text               │  ┌────────────────────────────────┐    │
│  Image list  │  Font size          │  │      TRANSPARENCY GRID         │    │
│  (× remove)  │  Opacity            │  │        PREVIEW CANVAS          │    │
│              │  Color              │  │                                │    │
│              │  Position (3x3)     │  └────────────────────────────────┘    │
│              │  Noise              │                                        │
│              │  [Download .zip]    │                                        │
└──────────────┴─────────────────────┴────────────────────────────────────────┘

The tab is a view: it emits signals for every user action and the
controller pushes state back with set_items() / set_options() / set_busy().
"""

from typing import Optional, Sequence

from PyQt6.QtCore import Qt, pyqtSignal, QRectF
from PyQt6.QtGui import QPainter, QColor, QPen, QImage, QPainterPath
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit, QPushButton,
    QSplitter, QFrame, QScrollArea, QSizePolicy, QProgressBar
)

from app.core.items import ImageItem
from app.core.options import WatermarkOptions, DEFAULT_OPTIONS
from app.core.pipeline import fit_display_size

from .widgets import ImageListWidget, ColorButton, PositionGrid, NoWheelSlider


class TransparencyGridWidget(QWidget):
    """
    Preview canvas with a checkerboard background.

    The rendered image keeps its native resolution; it is only scaled
    for display, preserving the aspect ratio.
    """

    GRID_LIGHT = QColor("#F3F4F6")
    GRID_DARK = QColor("#E5E7EB")
    GRID_SIZE = 12
    MARGIN = 20

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self._image: Optional[QImage] = None
        self._is_loading = False
        self._error_message: Optional[str] = None

        self.setObjectName("previewCanvas")
        self.setMinimumSize(400, 400)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

    def set_preview(self, image: QImage):
        self._image = image
        self._is_loading = False
        self._error_message = None
        self.update()

    def set_loading(self, is_loading: bool = True):
        # Keep showing the previous render while the next one is computed
        self._is_loading = is_loading
        self.update()

    def set_error(self, message: str):
        self._error_message = message
        self._is_loading = False
        self._image = None
        self.update()

    def clear(self):
        self._image = None
        self._is_loading = False
        self._error_message = None
        self.update()

    def display_rect(self) -> Optional[QRectF]:
        """Where the preview image is drawn, or None if there is none."""
        if self._image is None or self._image.isNull():
            return None

        container_w = max(1, self.width() - 2 * self.MARGIN)
        container_h = max(1, self.height() - 2 * self.MARGIN)
        display_w, display_h = fit_display_size(
            self._image.width(), self._image.height(), container_w, container_h
        )
        x = (self.width() - display_w) / 2
        y = (self.height() - display_h) / 2
        return QRectF(x, y, display_w, display_h)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)

        rect = self.rect()

        clip_path = QPainterPath()
        clip_path.addRoundedRect(QRectF(rect).adjusted(1, 1, -1, -1), 10, 10)
        painter.setClipPath(clip_path)

        for y in range(0, rect.height(), self.GRID_SIZE):
            for x in range(0, rect.width(), self.GRID_SIZE):
                is_light = ((x // self.GRID_SIZE) + (y // self.GRID_SIZE)) % 2 == 0
                color = self.GRID_LIGHT if is_light else self.GRID_DARK
                painter.fillRect(x, y, self.GRID_SIZE, self.GRID_SIZE, color)

        painter.setClipping(False)

        pen = QPen(QColor("#D1D5DB"))
        pen.setWidth(1)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRoundedRect(QRectF(rect).adjusted(0.5, 0.5, -0.5, -0.5), 10, 10)

        target = self.display_rect()
        if self._error_message:
            painter.setPen(QPen(QColor("#DC2626")))
            painter.drawText(QRectF(rect), Qt.AlignmentFlag.AlignCenter, f"✕ {self._error_message}")
        elif target is not None:
            painter.fillRect(target.translated(4, 4), QColor(0, 0, 0, 40))
            painter.drawImage(target, self._image)
        else:
            painter.setPen(QPen(QColor("#6B7280")))
            painter.drawText(
                QRectF(rect), Qt.AlignmentFlag.AlignCenter,
                "Image preview\nAdd images to start watermarking."
            )

        if self._is_loading and target is not None:
            painter.setPen(QPen(QColor("#3B82F6")))
            painter.drawText(
                QRectF(rect).adjusted(0, 0, -8, -8),
                Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignBottom,
                "⟳ rendering..."
            )

        painter.end()


class WatermarkTab(QWidget):
    """
    Main editing view.

    Signals:
        files_added(list[Path])
        item_selected(int)
        remove_requested(int)
        clear_requested()
        option_changed(str, object): (WatermarkOptions field name, new value)
        export_requested()
    """

    files_added = pyqtSignal(list)
    item_selected = pyqtSignal(int)
    remove_requested = pyqtSignal(int)
    clear_requested = pyqtSignal()
    option_changed = pyqtSignal(str, object)
    export_requested = pyqtSignal()

    # Control ranges
    FONT_SIZE_RANGE = (10, 200)
    PERCENT_RANGE = (0, 100)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._item_count = 0
        self._is_busy = False
        self._setup_ui()
        self._connect_signals()
        self.set_options(DEFAULT_OPTIONS)
        self._update_controls_state()

    def _setup_ui(self):
        main_layout = QHBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.setChildrenCollapsible(False)
        splitter.addWidget(self._create_input_panel())
        splitter.addWidget(self._create_control_panel())
        splitter.addWidget(self._create_preview_panel())
        splitter.setSizes([240, 320, 640])
        splitter.setStretchFactor(2, 1)

        main_layout.addWidget(splitter)

    # ========================================================================
    # PANELS
    # ========================================================================

    def _create_input_panel(self) -> QFrame:
        panel = QFrame()
        panel.setObjectName("inputPanel")
        panel.setMinimumWidth(220)

        layout = QVBoxLayout(panel)
        layout.setContentsMargins(16, 16, 8, 16)
        layout.setSpacing(12)

        layout.addWidget(self._create_header("1. Upload images"))

        self.image_list = ImageListWidget()
        layout.addWidget(self.image_list, 1)

        return panel

    def _create_control_panel(self) -> QFrame:
        panel = QFrame()
        panel.setObjectName("controlPanel")
        panel.setMinimumWidth(300)

        outer = QVBoxLayout(panel)
        outer.setContentsMargins(8, 16, 8, 16)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        scroll.setFrameShape(QFrame.Shape.NoFrame)

        self.controls = QWidget()
        layout = QVBoxLayout(self.controls)
        layout.setContentsMargins(8, 0, 8, 0)
        layout.setSpacing(16)

        layout.addWidget(self._create_header("2. Customize watermark"))

        self.text_input = QLineEdit()
        layout.addWidget(self._create_field_group("Text", self.text_input))

        font_widget, self.font_size_slider, self.font_size_label = self._create_slider(
            "Font size", *self.FONT_SIZE_RANGE
        )
        layout.addWidget(font_widget)

        opacity_widget, self.opacity_slider, self.opacity_label = self._create_slider(
            "Opacity", *self.PERCENT_RANGE
        )
        layout.addWidget(opacity_widget)

        color_row = QWidget()
        color_layout = QHBoxLayout(color_row)
        color_layout.setContentsMargins(0, 0, 0, 0)
        color_layout.setSpacing(8)
        self.color_button = ColorButton()
        color_layout.addWidget(self.color_button)
        self.color_input = QLineEdit()
        color_layout.addWidget(self.color_input, 1)
        layout.addWidget(self._create_field_group("Color", color_row))

        self.position_grid = PositionGrid()
        layout.addWidget(self._create_field_group("Position", self.position_grid))

        layout.addWidget(self._create_header("3. Image effects"))

        noise_widget, self.noise_slider, self.noise_label = self._create_slider(
            "Noise", *self.PERCENT_RANGE
        )
        layout.addWidget(noise_widget)

        layout.addStretch()
        scroll.setWidget(self.controls)
        outer.addWidget(scroll, 1)

        outer.addWidget(self._create_export_section())

        return panel

    def _create_export_section(self) -> QFrame:
        section = QFrame()
        section.setObjectName("outputSection")

        layout = QVBoxLayout(section)
        layout.setContentsMargins(8, 12, 8, 0)
        layout.setSpacing(10)

        layout.addWidget(self._create_header("4. Download"))

        self.progress_bar = QProgressBar()
        self.progress_bar.setVisible(False)
        self.progress_bar.setTextVisible(False)
        self.progress_bar.setFixedHeight(6)
        layout.addWidget(self.progress_bar)

        self.status_label = QLabel("")
        self.status_label.setObjectName("statusText")
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.status_label)

        self.export_btn = QPushButton()
        self.export_btn.setObjectName("ctaButton")
        self.export_btn.setMinimumHeight(48)
        self.export_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        self.export_btn.clicked.connect(self.export_requested.emit)
        layout.addWidget(self.export_btn)

        return section

    def _create_preview_panel(self) -> QFrame:
        panel = QFrame()
        panel.setObjectName("previewPanel")

        layout = QVBoxLayout(panel)
        layout.setContentsMargins(8, 16, 16, 16)

        self.preview_canvas = TransparencyGridWidget()
        layout.addWidget(self.preview_canvas, 1)

        return panel

    # ========================================================================
    # HELPERS
    # ========================================================================

    @staticmethod
    def _create_header(text: str) -> QLabel:
        header = QLabel(text)
        header.setObjectName("panelHeader")
        return header

    @staticmethod
    def _create_field_group(label: str, widget: QWidget) -> QWidget:
        container = QWidget()
        layout = QVBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        lbl = QLabel(label)
        lbl.setObjectName("fieldLabel")
        layout.addWidget(lbl)
        layout.addWidget(widget)

        return container

    @staticmethod
    def _create_slider(label: str, min_val: int, max_val: int) -> tuple:
        """Create a labelled slider with a value label on the right."""
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        row = QHBoxLayout()
        lbl = QLabel(label)
        lbl.setObjectName("fieldLabel")
        row.addWidget(lbl, 1)
        value_label = QLabel()
        value_label.setObjectName("valueLabel")
        row.addWidget(value_label)
        layout.addLayout(row)

        slider = NoWheelSlider(Qt.Orientation.Horizontal)
        slider.setRange(min_val, max_val)
        layout.addWidget(slider)

        return widget, slider, value_label

    # ========================================================================
    # SIGNALS
    # ========================================================================

    def _connect_signals(self):
        self.image_list.files_added.connect(self.files_added.emit)
        self.image_list.item_selected.connect(self.item_selected.emit)
        self.image_list.remove_requested.connect(self.remove_requested.emit)
        self.image_list.clear_requested.connect(self.clear_requested.emit)

        self.text_input.textEdited.connect(lambda v: self.option_changed.emit("text", v))
        self.font_size_slider.valueChanged.connect(self._on_font_size_changed)
        self.opacity_slider.valueChanged.connect(self._on_opacity_changed)
        self.noise_slider.valueChanged.connect(self._on_noise_changed)
        self.color_button.color_changed.connect(self._on_color_picked)
        self.color_input.textEdited.connect(lambda v: self.option_changed.emit("color", v))
        self.position_grid.position_changed.connect(
            lambda p: self.option_changed.emit("position", p)
        )

    def _on_font_size_changed(self, value: int):
        self.font_size_label.setText(f"{value}px")
        self.option_changed.emit("font_size", value)

    def _on_opacity_changed(self, value: int):
        self.opacity_label.setText(f"{value}%")
        self.option_changed.emit("opacity", value / 100)

    def _on_noise_changed(self, value: int):
        self.noise_label.setText(f"{value}%")
        self.option_changed.emit("noise_level", value / 100)

    def _on_color_picked(self, color: str):
        self.color_input.setText(color)
        self.option_changed.emit("color", color)

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    def set_items(self, items: Sequence[ImageItem], selected_index: Optional[int]):
        self._item_count = len(items)
        self.image_list.set_items(items, selected_index)
        self._update_controls_state()

    def set_selected_index(self, index: Optional[int]):
        self.image_list.set_selected_index(index)

    def set_options(self, options: WatermarkOptions):
        """Show the given options without emitting option_changed."""
        widgets = (
            self.text_input, self.font_size_slider, self.opacity_slider,
            self.noise_slider, self.color_input
        )
        for widget in widgets:
            widget.blockSignals(True)
        try:
            self.text_input.setText(options.text)
            self.font_size_slider.setValue(int(round(options.font_size)))
            self.opacity_slider.setValue(int(round(options.opacity * 100)))
            self.noise_slider.setValue(int(round(options.noise_level * 100)))
            self.color_input.setText(options.color)
        finally:
            for widget in widgets:
                widget.blockSignals(False)

        self.font_size_label.setText(f"{self.font_size_slider.value()}px")
        self.opacity_label.setText(f"{self.opacity_slider.value()}%")
        self.noise_label.setText(f"{self.noise_slider.value()}%")
        self.color_button.set_color(options.color)
        self.position_grid.set_position(options.position)

    def set_busy(self, is_busy: bool):
        """Toggle the export-in-progress state."""
        self._is_busy = is_busy
        self.progress_bar.setVisible(is_busy)
        if is_busy:
            self.progress_bar.setValue(0)
        self.image_list.setEnabled(not is_busy)
        self._update_controls_state()

    def set_progress(self, current: int, total: int):
        self.progress_bar.setMaximum(total)
        self.progress_bar.setValue(current)

    def set_status(self, message: str, success: Optional[bool] = None):
        self.status_label.setText(message)
        if success is None:
            self.status_label.setStyleSheet("")
        else:
            self.status_label.setStyleSheet("color: #16A34A;" if success else "color: #DC2626;")

    def _update_controls_state(self):
        has_items = self._item_count > 0
        self.controls.setEnabled(has_items)
        self.export_btn.setEnabled(has_items and not self._is_busy)
        if self._is_busy:
            self.export_btn.setText("Processing...")
        else:
            self.export_btn.setText(f"Download all ({self._item_count}) as .zip")

    # Preview passthroughs

    def show_preview(self, image: QImage):
        self.preview_canvas.set_preview(image)

    def show_preview_loading(self):
        self.preview_canvas.set_loading(True)

    def show_preview_error(self, message: str):
        self.preview_canvas.set_error(message)

    def clear_preview(self):
        self.preview_canvas.clear()
