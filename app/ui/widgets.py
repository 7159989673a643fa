"""
Reusable UI Widgets
===================
Custom widgets used by the watermark tab.

Key Components:
- NoWheelSlider: Slider that ignores stray wheel events
- DragDropLabel: Drag-and-drop / click-to-pick file zone
- ImageListWidget: Thumbnail list with per-item remove and clear-all
- ColorButton: Color swatch opening a color picker
- PositionGrid: 3x3 grid of watermark anchor positions
"""

from pathlib import Path
from typing import List, Optional, Sequence

from PyQt6.QtCore import Qt, pyqtSignal, QSize, QRectF
from PyQt6.QtGui import (
    QDragEnterEvent, QDropEvent, QPixmap, QColor, QWheelEvent,
    QPainter, QPainterPath, QPen, QFont
)
from PyQt6.QtWidgets import (
    QLabel, QListWidget, QListWidgetItem, QSlider, QButtonGroup,
    QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QPushButton,
    QFileDialog, QAbstractItemView, QSizePolicy, QColorDialog
)

from app.core.items import ImageItem
from app.core.options import WatermarkPosition, parse_color


class NoWheelSlider(QSlider):
    """Slider that ignores wheel events unless explicitly focused."""

    def __init__(self, orientation=Qt.Orientation.Horizontal, parent=None):
        super().__init__(orientation, parent)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    def wheelEvent(self, event: QWheelEvent):
        if self.hasFocus():
            super().wheelEvent(event)
        else:
            event.ignore()


class DragDropLabel(QLabel):
    """
    A label that accepts drag-and-drop files and opens a file picker on click.

    Signals:
        files_dropped(list[Path]): Emitted when files are dropped or picked.
    """

    files_dropped = pyqtSignal(list)  # List[Path]

    # Supported image formats
    SUPPORTED_FORMATS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff"}

    ACCENT_COLOR = "#3B82F6"
    BORDER_COLOR = "#9CA3AF"
    TEXT_COLOR = "#374151"

    def __init__(self, text: str = "Choose or drop images", parent: Optional[QWidget] = None):
        super().__init__(parent)

        self._hint_text = text
        self._is_dragging = False

        self.setAcceptDrops(True)
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setMinimumSize(200, 70)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self.setObjectName("dragDropLabel")
        self.setCursor(Qt.CursorShape.PointingHandCursor)

    def paintEvent(self, event):
        """Dashed drop zone with hint text."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        rect = QRectF(self.rect()).adjusted(4, 4, -4, -4)

        path = QPainterPath()
        path.addRoundedRect(rect, 10, 10)
        painter.fillPath(path, QColor("#EFF6FF" if self._is_dragging else "#F9FAFB"))

        pen = QPen(QColor(self.ACCENT_COLOR if self._is_dragging else self.BORDER_COLOR))
        pen.setStyle(Qt.PenStyle.DashLine)
        pen.setWidth(2)
        painter.setPen(pen)
        painter.drawRoundedRect(rect, 10, 10)

        font = QFont()
        font.setPointSize(11)
        font.setWeight(QFont.Weight.DemiBold)
        painter.setFont(font)
        painter.setPen(QColor(self.ACCENT_COLOR if self._is_dragging else self.TEXT_COLOR))
        hint = "Release to add images" if self._is_dragging else self._hint_text
        painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, hint)

        painter.end()

    def mousePressEvent(self, event):
        """Handle mouse click to open file dialog."""
        if event.button() == Qt.MouseButton.LeftButton:
            self.open_file_dialog()
        super().mousePressEvent(event)

    def open_file_dialog(self):
        """Open file dialog to select images."""
        formats = " ".join(f"*{fmt}" for fmt in sorted(self.SUPPORTED_FORMATS))
        files, _ = QFileDialog.getOpenFileNames(
            self,
            "Choose images",
            "",
            f"Images ({formats});;All files (*.*)"
        )

        if files:
            self.files_dropped.emit([Path(f) for f in files])

    def _image_paths(self, event) -> List[Path]:
        paths: List[Path] = []
        for url in event.mimeData().urls():
            if url.isLocalFile():
                path = Path(url.toLocalFile())
                if path.suffix.lower() in self.SUPPORTED_FORMATS:
                    paths.append(path)
        return paths

    def dragEnterEvent(self, event: QDragEnterEvent):
        """Accept drags carrying at least one image file."""
        if event.mimeData().hasUrls() and self._image_paths(event):
            event.acceptProposedAction()
            self._is_dragging = True
            self.update()
            return
        event.ignore()

    def dragLeaveEvent(self, event):
        self._is_dragging = False
        self.update()
        super().dragLeaveEvent(event)

    def dropEvent(self, event: QDropEvent):
        self._is_dragging = False
        self.update()

        paths = self._image_paths(event)
        if paths:
            self.files_dropped.emit(paths)
            event.acceptProposedAction()


class _ImageRow(QWidget):
    """One row of the image list: thumbnail, filename, remove button."""

    remove_clicked = pyqtSignal()

    def __init__(self, item: ImageItem, thumbnail_size: int, parent: Optional[QWidget] = None):
        super().__init__(parent)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(4, 2, 4, 2)
        layout.setSpacing(8)

        thumb = QLabel()
        thumb.setFixedSize(thumbnail_size, thumbnail_size)
        thumb.setAlignment(Qt.AlignmentFlag.AlignCenter)
        thumb.setPixmap(self._create_thumbnail(item, thumbnail_size))
        layout.addWidget(thumb)

        name = QLabel(item.name)
        name.setToolTip(item.name)
        layout.addWidget(name, 1)

        remove_btn = QPushButton("×")
        remove_btn.setObjectName("removeButton")
        remove_btn.setFixedSize(22, 22)
        remove_btn.setToolTip("Remove")
        remove_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        remove_btn.clicked.connect(self.remove_clicked.emit)
        layout.addWidget(remove_btn, 0, Qt.AlignmentFlag.AlignVCenter)

    @staticmethod
    def _create_thumbnail(item: ImageItem, size: int) -> QPixmap:
        pixmap = QPixmap()
        if not pixmap.loadFromData(item.data):
            # Undecodable file: show a placeholder
            pixmap = QPixmap(size, size)
            pixmap.fill(QColor("#D1D5DB"))
            return pixmap
        return pixmap.scaled(
            size, size,
            Qt.AspectRatioMode.KeepAspectRatioByExpanding,
            Qt.TransformationMode.SmoothTransformation
        ).copy(0, 0, size, size)


class ImageListWidget(QWidget):
    """
    List of the selected images with thumbnails.

    The widget is a view only: the controller owns the item list and
    calls set_items() after every change.

    Signals:
        files_added(list[Path]): New files were dropped or picked.
        item_selected(int): The user clicked an item.
        remove_requested(int): The user clicked an item's remove button.
        clear_requested(): The user clicked "clear all".
    """

    files_added = pyqtSignal(list)  # List[Path]
    item_selected = pyqtSignal(int)
    remove_requested = pyqtSignal(int)
    clear_requested = pyqtSignal()

    THUMBNAIL_SIZE = 48

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._updating = False
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        self.drop_label = DragDropLabel("Choose or drop images")
        self.drop_label.files_dropped.connect(self.files_added.emit)
        layout.addWidget(self.drop_label)

        header = QHBoxLayout()
        header.setSpacing(6)

        self.count_label = QLabel("Selected images (0)")
        self.count_label.setObjectName("countLabel")
        header.addWidget(self.count_label, 1)

        self.btn_clear = QPushButton("Clear all")
        self.btn_clear.setObjectName("linkButton")
        self.btn_clear.setCursor(Qt.CursorShape.PointingHandCursor)
        self.btn_clear.clicked.connect(self.clear_requested.emit)
        header.addWidget(self.btn_clear)

        layout.addLayout(header)

        self.list_widget = QListWidget()
        self.list_widget.setObjectName("imageList")
        self.list_widget.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.list_widget.setSpacing(2)
        self.list_widget.currentRowChanged.connect(self._on_current_row_changed)
        layout.addWidget(self.list_widget, 1)

        self._update_ui_state(0)

    def set_items(self, items: Sequence[ImageItem], selected_index: Optional[int]):
        """Rebuild the list from the controller's state."""
        self._updating = True
        try:
            self.list_widget.clear()
            for index, item in enumerate(items):
                list_item = QListWidgetItem()
                list_item.setSizeHint(QSize(-1, self.THUMBNAIL_SIZE + 8))
                self.list_widget.addItem(list_item)

                row = _ImageRow(item, self.THUMBNAIL_SIZE)
                row.remove_clicked.connect(lambda i=index: self.remove_requested.emit(i))
                self.list_widget.setItemWidget(list_item, row)

            if selected_index is not None:
                self.list_widget.setCurrentRow(selected_index)
        finally:
            self._updating = False

        self._update_ui_state(len(items))

    def set_selected_index(self, index: Optional[int]):
        self._updating = True
        try:
            self.list_widget.setCurrentRow(-1 if index is None else index)
        finally:
            self._updating = False

    def _update_ui_state(self, count: int):
        self.count_label.setText(f"Selected images ({count})")
        self.btn_clear.setVisible(count > 0)

    def _on_current_row_changed(self, row: int):
        if not self._updating and row >= 0:
            self.item_selected.emit(row)


class ColorButton(QPushButton):
    """
    A button that shows and allows selecting a color.

    Signals:
        color_changed(str): Emitted with a "#rrggbb" string.
    """

    color_changed = pyqtSignal(str)

    def __init__(self, initial_color: str = "#ffffff", parent: Optional[QWidget] = None):
        super().__init__(parent)

        self._color = initial_color
        self.setFixedSize(40, 40)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.clicked.connect(self._open_color_dialog)
        self._update_style()

    def _update_style(self):
        """Update button style to show current color."""
        try:
            r, g, b, _ = parse_color(self._color)
        except ValueError:
            r, g, b = 0, 0, 0
        luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255
        border_color = "#6B7280" if luminance > 0.5 else "#D1D5DB"

        self.setStyleSheet(f"""
            QPushButton {{
                background-color: rgb({r}, {g}, {b});
                border: 2px solid {border_color};
                border-radius: 6px;
            }}
            QPushButton:hover {{
                border-color: #3B82F6;
            }}
        """)

    def _open_color_dialog(self):
        color = QColorDialog.getColor(QColor(self._color), self, "Watermark color")
        if color.isValid():
            self._color = color.name()
            self._update_style()
            self.color_changed.emit(self._color)

    def set_color(self, color: str):
        """Set the color without emitting color_changed."""
        self._color = color
        self._update_style()


class PositionGrid(QWidget):
    """
    3x3 grid of buttons, one per watermark position.

    Signals:
        position_changed(WatermarkPosition)
    """

    position_changed = pyqtSignal(object)

    def __init__(self, initial: WatermarkPosition = WatermarkPosition.BOTTOM_RIGHT,
                 parent: Optional[QWidget] = None):
        super().__init__(parent)

        layout = QGridLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        self._group = QButtonGroup(self)
        self._group.setExclusive(True)
        self._buttons = {}

        # Enum members are declared row by row
        for index, position in enumerate(WatermarkPosition):
            button = QPushButton("●")
            button.setObjectName("positionButton")
            button.setCheckable(True)
            button.setFixedHeight(36)
            button.setToolTip(position.value)
            button.setCursor(Qt.CursorShape.PointingHandCursor)
            button.clicked.connect(lambda _, p=position: self.position_changed.emit(p))
            self._group.addButton(button)
            self._buttons[position] = button
            layout.addWidget(button, index // 3, index % 3)

        self.set_position(initial)

    def set_position(self, position: WatermarkPosition):
        self._buttons[position].setChecked(True)
