"""
Image Items
===========
Source images selected by the user and the ordered list that holds them.

An ImageItem is the original file's bytes plus its name and MIME type.
Items are never mutated; every render decodes a fresh surface from them.
"""

import io
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from PIL import Image


@dataclass(frozen=True)
class ImageItem:
    """An opaque named image blob."""
    name: str
    data: bytes
    mime_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ImageItem":
        """
        Read an image file into an item.

        The MIME type is guessed from the extension, then from the
        image header if the extension is unknown.

        Args:
            path: Path to the image file.

        Returns:
            ImageItem holding the file's bytes.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")

        data = path.read_bytes()
        mime_type, _ = mimetypes.guess_type(path.name)
        if not mime_type or not mime_type.startswith("image/"):
            mime_type = _sniff_mime_type(data)

        return cls(name=path.name, data=data, mime_type=mime_type)

    def __repr__(self) -> str:
        return f"ImageItem(name={self.name!r}, mime_type={self.mime_type!r}, size={len(self.data)})"


def _sniff_mime_type(data: bytes) -> str:
    """Detect the MIME type from the image header."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return Image.MIME.get(img.format, "application/octet-stream")
    except (OSError, ValueError):
        return "application/octet-stream"


class ImageCollection:
    """
    Ordered list of image items with a single selected index.

    Invariant: selected_index is None when the list is empty,
    otherwise a valid index into the list.
    """

    def __init__(self, items: Optional[Iterable[ImageItem]] = None):
        self._items: List[ImageItem] = []
        self._selected_index: Optional[int] = None
        if items:
            self.add(items)

    @property
    def items(self) -> List[ImageItem]:
        return self._items.copy()

    @property
    def selected_index(self) -> Optional[int]:
        return self._selected_index

    @property
    def selected_item(self) -> Optional[ImageItem]:
        if self._selected_index is None:
            return None
        return self._items[self._selected_index]

    def add(self, items: Iterable[ImageItem]) -> None:
        """Append items; selects the first item if nothing was selected."""
        new_items = list(items)
        if not new_items:
            return
        self._items.extend(new_items)
        if self._selected_index is None:
            self._selected_index = 0

    def remove(self, index: int) -> ImageItem:
        """
        Remove one item and re-clamp the selection.

        - Last item removed: selection becomes None.
        - Selected item removed: the previous item (or the first) is selected.
        - An earlier item removed: the selected index shifts down by one.

        Args:
            index: Index of the item to remove.

        Returns:
            The removed item.

        Raises:
            IndexError: If index is out of range.
        """
        if not 0 <= index < len(self._items):
            raise IndexError(f"Image index out of range: {index}")

        removed = self._items.pop(index)
        selected = self._selected_index

        if not self._items:
            self._selected_index = None
        elif selected == index:
            self._selected_index = max(0, index - 1)
        elif selected is not None and selected > index:
            self._selected_index = selected - 1

        return removed

    def clear(self) -> None:
        """Remove every item."""
        self._items.clear()
        self._selected_index = None

    def select(self, index: int) -> None:
        """Select the item at index."""
        if not 0 <= index < len(self._items):
            raise IndexError(f"Image index out of range: {index}")
        self._selected_index = index

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ImageItem]:
        return iter(self._items.copy())

    def __getitem__(self, index: int) -> ImageItem:
        return self._items[index]
