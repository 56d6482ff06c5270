"""
Format Dispatcher — Route a job to exactly one strategy.

Rules are checked in order and the first match wins:

    1. convert + image target            → IMAGE
    2. convert + audio/video target      → MEDIA
    3. convert + pdf + image/* upload    → IMAGE_PDF
    4. convert + pdf + word-processor    → DOCUMENT_PDF
    5. convert + anything else           → UnsupportedTarget
    6. resize                            → RESIZE
    7. compress                          → ARCHIVE

The rule sets are disjoint, so no request can match two rules.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from ..models.job import Operation, Strategy
from .errors import UnsupportedTarget

IMAGE_TARGETS = frozenset({"jpg", "jpeg", "png", "webp", "tiff", "avif"})
MEDIA_TARGETS = frozenset({"mp3", "wav", "ogg", "mp4", "mov", "webm", "mkv"})
DOCUMENT_EXTENSIONS = frozenset({".doc", ".docx", ".odt", ".rtf"})


def normalize_target(target: Optional[str]) -> str:
    return (target or "").strip().lower().lstrip(".")


def select_strategy(
    operation: Union[Operation, str],
    target: Optional[str] = None,
    filename: str = "",
    content_type: Optional[str] = None,
) -> Strategy:
    """
    Pick the strategy for a request.

    Args:
        operation: convert, resize or compress.
        target: Requested output format (convert only, case-insensitive).
        filename: Original upload filename; only its extension is used.
        content_type: Declared MIME type of the upload.

    Raises:
        UnsupportedTarget: No rule matches.
    """
    operation = Operation(operation)

    if operation is Operation.CONVERT:
        fmt = normalize_target(target)
        if fmt in IMAGE_TARGETS:
            return Strategy.IMAGE
        if fmt in MEDIA_TARGETS:
            return Strategy.MEDIA
        if fmt == "pdf":
            if (content_type or "").lower().startswith("image/"):
                return Strategy.IMAGE_PDF
            if Path(filename).suffix.lower() in DOCUMENT_EXTENSIONS:
                return Strategy.DOCUMENT_PDF
        raise UnsupportedTarget(detail=f"convertTo={fmt!r} filename={filename!r}")

    if operation is Operation.RESIZE:
        return Strategy.RESIZE

    return Strategy.ARCHIVE
