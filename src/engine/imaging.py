"""
Imaging — In-process image strategies (Pillow).

Three entry points:

1. convert_image()     re-encode into jpg/png/webp/tiff/avif
2. image_to_pdf()      single-page PDF from any decodable image
3. resize_image()      fit-inside resize + size-constrained JPEG encode

## Size-constrained encoding

    quality = 90
    buf = encode(quality)
    while len(buf) > target_bytes and quality > 10:
        quality -= 10
        buf = encode(quality)

A bounded linear search: at most 9 encodes (90, 80, ... 10), each pass
depending on the previous buffer size. The quality-10 buffer is returned
even if it is still over budget.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import EncodeError

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 85      # resize without a size budget
START_QUALITY = 90        # first pass of the budget search
QUALITY_STEP = 10
QUALITY_FLOOR = 10

# convertTo value → Pillow format name
PIL_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "tiff": "TIFF",
    "avif": "AVIF",
}

# Modes each encoder writes as-is. TIFF takes everything; JPEG goes
# through flatten_to_rgb.
ENCODER_MODES = {
    "PNG": frozenset({"1", "L", "LA", "I", "P", "RGB", "RGBA"}),
    "WEBP": frozenset({"RGB", "RGBA"}),
    "AVIF": frozenset({"RGB", "RGBA"}),
}


@dataclass
class EncodeResult:
    """Outcome of the size-constrained encoder."""

    data: bytes
    quality: int
    passes: int
    target_bytes: Optional[int] = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def within_budget(self) -> bool:
        return self.target_bytes is None or self.size_bytes <= self.target_bytes


# ── Helpers ──────────────────────────────────────────────────


def _open(path: Path) -> Image.Image:
    try:
        img = Image.open(path)
        img.load()
        return img
    except (UnidentifiedImageError, OSError) as e:
        raise EncodeError(detail=f"cannot decode {path.name}: {e}")


def flatten_to_rgb(img: Image.Image) -> Image.Image:
    """Drop alpha by compositing over white; JPEG and PDF have no alpha."""
    if img.mode == "RGB":
        return img
    if img.mode in ("RGBA", "LA", "P"):
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        bg = Image.new("RGB", img.size, (255, 255, 255))
        bg.paste(img, mask=img.split()[-1])
        return bg
    return img.convert("RGB")


def fit_inside(img: Image.Image, width: Optional[int], height: Optional[int]) -> Image.Image:
    """Shrink to fit inside width×height keeping aspect ratio. Never enlarges."""
    if not width and not height:
        return img
    bound = (width or img.width, height or img.height)
    if img.width <= bound[0] and img.height <= bound[1]:
        return img
    img = img.copy()
    img.thumbnail(bound, Image.LANCZOS)
    return img


def encode_jpeg(img: Image.Image, quality: int) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def prepare_for_encoder(img: Image.Image, fmt: str) -> Image.Image:
    """
    Convert ``img`` to a mode the ``fmt`` encoder can write.

    CMYK, YCbCr, LAB, 16-bit and float images decode fine but most encoders
    refuse them. Alpha (or palette transparency) is kept where the target
    supports it.
    """
    if img.mode == "F" or img.mode.startswith("I;"):
        img = img.convert("I")
    if fmt == "JPEG":
        return flatten_to_rgb(img)

    allowed = ENCODER_MODES.get(fmt)
    if allowed is None or img.mode in allowed:
        return img

    has_alpha = "A" in img.getbands() or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")


# ── Size-constrained encoder ─────────────────────────────────


def encode_within_budget(img: Image.Image, target_bytes: Optional[int]) -> EncodeResult:
    """
    Encode ``img`` as JPEG, lowering quality until it fits ``target_bytes``.

    Args:
        img: RGB image, already oriented and resized.
        target_bytes: Byte budget. None → single pass at DEFAULT_QUALITY.

    Returns:
        EncodeResult with the last buffer produced.
    """
    if target_bytes is None:
        return EncodeResult(data=encode_jpeg(img, DEFAULT_QUALITY), quality=DEFAULT_QUALITY, passes=1)

    quality = START_QUALITY
    data = encode_jpeg(img, quality)
    passes = 1
    while len(data) > target_bytes and quality > QUALITY_FLOOR:
        quality -= QUALITY_STEP
        data = encode_jpeg(img, quality)
        passes += 1

    result = EncodeResult(data=data, quality=quality, passes=passes, target_bytes=target_bytes)
    if not result.within_budget:
        logger.info(
            f"Budget {target_bytes:,} bytes not reached; "
            f"returning quality {quality} result ({len(data):,} bytes)"
        )
    return result


# ── Strategies ───────────────────────────────────────────────


def convert_image(input_path: Path, output_path: Path, target: str) -> Path:
    """Re-encode ``input_path`` into ``target`` format at ``output_path``."""
    fmt = PIL_FORMATS.get(target.lower())
    if fmt is None:
        raise EncodeError(detail=f"no image encoder for '{target}'")

    img = prepare_for_encoder(_open(input_path), fmt)

    try:
        img.save(output_path, format=fmt)
    except (KeyError, ValueError, OSError) as e:
        raise EncodeError(detail=f"{fmt} encode failed: {e}")

    logger.info(
        f"Image converted: {input_path.name} ({img.size[0]}x{img.size[1]}) → {fmt} "
        f"({output_path.stat().st_size:,} bytes)"
    )
    return output_path


def image_to_pdf(input_path: Path, output_path: Path) -> Path:
    img = flatten_to_rgb(_open(input_path))
    try:
        img.save(output_path, format="PDF")
    except (ValueError, OSError) as e:
        raise EncodeError(detail=f"PDF encode failed: {e}")
    return output_path


def resize_image(
    input_path: Path,
    output_path: Path,
    *,
    width: Optional[int] = None,
    height: Optional[int] = None,
    target_size_kb: Optional[int] = None,
) -> EncodeResult:
    """
    Auto-orient, fit inside width×height, then JPEG-encode within budget.

    Writes the final buffer to ``output_path``.
    """
    try:
        img = _open(input_path)
    except EncodeError as e:
        raise EncodeError("Resize failed", detail=e.detail)

    original_dims = img.size
    try:
        img = ImageOps.exif_transpose(img)
        img = fit_inside(img, width, height)
        img = flatten_to_rgb(img)
        target_bytes = target_size_kb * 1024 if target_size_kb else None
        result = encode_within_budget(img, target_bytes)
    except (ValueError, OSError) as e:
        raise EncodeError("Resize failed", detail=str(e))

    output_path.write_bytes(result.data)
    logger.info(
        f"Resized: {original_dims[0]}x{original_dims[1]} → {img.size[0]}x{img.size[1]}, "
        f"quality={result.quality}, passes={result.passes}, {result.size_bytes:,} bytes"
    )
    return result
