"""
Archive Packaging
=================
Packs named image buffers into a single zip archive.
"""

import io
import logging
import zipfile
from typing import Dict, Iterable, Tuple

logger = logging.getLogger(__name__)

ARCHIVE_NAME = "watermarked-images.zip"


def build_archive(entries: Iterable[Tuple[str, bytes]]) -> bytes:
    """
    Build a zip archive in memory.

    Names are not de-duplicated: if two entries share a name, the later
    bytes replace the earlier ones and the entry keeps its first position.

    Args:
        entries: (filename, data) pairs.

    Returns:
        The archive as bytes.
    """
    files: Dict[str, bytes] = {}
    for name, data in entries:
        if name in files:
            logger.warning("Duplicate archive entry %r, keeping the last one", name)
        files[name] = data

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in files.items():
            archive.writestr(name, data)

    return buffer.getvalue()
