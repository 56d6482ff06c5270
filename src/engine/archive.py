"""
Archive Job — Wrap one uploaded file in a single-entry ZIP.

The entry is named after the file the user uploaded, not the temporary
storage name. Compression effort comes from a three-tier level:

    low → 1    medium → 5    high → 9

Anything else (including no value) is treated as medium.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Optional

logger = logging.getLogger(__name__)

COMPRESSION_LEVELS = {
    "low": 1,
    "medium": 5,
    "high": 9,
}
DEFAULT_LEVEL = "medium"


def compression_level(tier: Optional[str]) -> int:
    """Map a tier name to a zlib level (1-9)."""
    key = (tier or "").strip().lower()
    return COMPRESSION_LEVELS.get(key, COMPRESSION_LEVELS[DEFAULT_LEVEL])


def entry_name(original_filename: str) -> str:
    """Strip any client-side directory components from the upload name."""
    name = PureWindowsPath(PurePosixPath(original_filename).name).name
    return name or "file"


def create_archive(
    input_path: Path,
    output_path: Path,
    original_filename: str,
    tier: Optional[str] = None,
) -> Path:
    """
    Write ``input_path`` into a new ZIP at ``output_path``.

    The archive is closed before this returns, so the file on disk is
    complete and safe to stream.
    """
    level = compression_level(tier)
    arcname = entry_name(original_filename)

    with zipfile.ZipFile(
        output_path,
        "w",
        compression=zipfile.ZIP_DEFLATED,
        compresslevel=level,
    ) as zf:
        zf.write(input_path, arcname=arcname)

    logger.info(
        f"Archived {arcname} at level {level}: "
        f"{input_path.stat().st_size:,} → {output_path.stat().st_size:,} bytes"
    )
    return output_path
