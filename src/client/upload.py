"""
Upload Client — Send a file to the converter with progress, save the result.

The multipart body is encoded once up front so its total size is known,
then sent in chunks. After each chunk the observer gets ``sent / total``.
The fraction is clamped to [0, 1] and never goes down.

## Usage

    from src.client.upload import UploadClient

    client = UploadClient("http://127.0.0.1:5000")
    saved = client.resize(
        Path("photo.jpg"), width=800, target_size_kb=50,
        dest_dir=Path("out"), on_progress=lambda f: print(f"{f:.0%}"),
    )

## Errors

Everything surfaces as UploadError. For non-2xx responses its message is
the server's plain-text body, which the server has already sanitized.
"""

from __future__ import annotations

import logging
import mimetypes
import re
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Callable, Dict, Iterator, Optional
from urllib.parse import unquote

import httpx

logger = logging.getLogger(__name__)

ProgressObserver = Callable[[float], None]

CHUNK_SIZE = 64 * 1024

# Used when the response carries no usable Content-Disposition name
DEFAULT_NAMES = {
    "convert": "converted_file",
    "resize": "resized_image.jpg",
    "compress": "compressed.zip",
}

_EXTENDED_RE = re.compile(r"filename\*\s*=\s*([\w!#$%&+^`|~-]+)'[^']*'([^;\s]+)", re.IGNORECASE)
_QUOTED_RE = re.compile(r'(?<![*\w])filename\s*=\s*"((?:[^"\\]|\\.)*)"', re.IGNORECASE)
_TOKEN_RE = re.compile(r"(?<![*\w])filename\s*=\s*([^\";\s]+)", re.IGNORECASE)


class UploadError(Exception):
    """Upload or conversion failed; message is safe to show the user."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def parse_content_disposition(header: Optional[str]) -> Optional[str]:
    """
    Extract the filename from a Content-Disposition header.

    Prefers ``filename*=charset''percent-encoded`` over ``filename="..."``.
    Returns None when no usable name is present.
    """
    if not header:
        return None

    match = _EXTENDED_RE.search(header)
    if match:
        charset = match.group(1).lower()
        try:
            name = unquote(match.group(2), encoding=charset, errors="strict")
        except (LookupError, UnicodeDecodeError):
            name = None
        if name:
            return name

    match = _QUOTED_RE.search(header)
    if match:
        name = re.sub(r"\\(.)", r"\1", match.group(1))
        return name or None

    match = _TOKEN_RE.search(header)
    if match:
        return unquote(match.group(1)) or None

    return None


def safe_local_name(name: str) -> str:
    """Drop directory parts so a server-chosen name can't escape dest_dir."""
    name = PureWindowsPath(PurePosixPath(name).name).name
    return "" if name in (".", "..") else name


class ProgressTracker:
    """Monotonic fraction reporter for one upload."""

    def __init__(self, total: int, observer: Optional[ProgressObserver]):
        self.total = total
        self.observer = observer
        self.sent = 0
        self.last = 0.0

    def advance(self, n: int) -> None:
        self.sent += n
        if not self.observer or not self.total:
            return
        fraction = min(1.0, max(self.last, self.sent / self.total))
        self.last = fraction
        self.observer(fraction)


def _chunks(body: bytes, tracker: ProgressTracker) -> Iterator[bytes]:
    for start in range(0, len(body), CHUNK_SIZE):
        chunk = body[start:start + CHUNK_SIZE]
        yield chunk
        tracker.advance(len(chunk))


class UploadClient:
    """HTTP client for the converter endpoints."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:5000",
        client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip("/")
        # No read timeout by default: the server holds the response until
        # ffmpeg/LibreOffice finish.
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout, connect=10.0))
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "UploadClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ── Core ─────────────────────────────────────────────────

    def post_form(
        self,
        path: str,
        file_field: str,
        file_path: Path,
        data: Optional[Dict[str, str]] = None,
        *,
        dest_dir: Path = Path("."),
        default_name: str = "download",
        on_progress: Optional[ProgressObserver] = None,
    ) -> Path:
        """
        Upload ``file_path`` as ``file_field`` and save the response body.

        Returns:
            Path of the saved file inside ``dest_dir``.

        Raises:
            UploadError: Network failure or non-2xx response.
        """
        url = f"{self.base_url}{path}"
        file_path = Path(file_path)
        mime = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        form = {k: str(v) for k, v in (data or {}).items() if v is not None}

        with file_path.open("rb") as fh:
            encoded = httpx.Request(
                "POST", url, data=form, files={file_field: (file_path.name, fh, mime)},
            )
            body = encoded.read()

        headers = {
            "Content-Type": encoded.headers["Content-Type"],
            "Content-Length": str(len(body)),
        }
        tracker = ProgressTracker(len(body), on_progress)
        logger.debug(f"POST {url} ({len(body):,} bytes)")

        try:
            with self._client.stream(
                "POST", url, content=_chunks(body, tracker), headers=headers,
            ) as response:
                if not response.is_success:
                    response.read()
                    message = response.text.strip() or "Server error"
                    raise UploadError(message, status_code=response.status_code)
                return self._save(response, Path(dest_dir), default_name)
        except httpx.TransportError as e:
            raise UploadError("Network error") from e

    def _save(self, response: httpx.Response, dest_dir: Path, default_name: str) -> Path:
        name = parse_content_disposition(response.headers.get("Content-Disposition"))
        name = safe_local_name(name or "") or safe_local_name(default_name) or "download"

        dest_dir.mkdir(parents=True, exist_ok=True)
        target = dest_dir / name
        with target.open("wb") as out:
            for chunk in response.iter_bytes():
                out.write(chunk)

        logger.info(f"Saved {target} ({target.stat().st_size:,} bytes)")
        return target

    # ── Operations ───────────────────────────────────────────

    def convert(self, file_path: Path, convert_to: str, **kwargs) -> Path:
        kwargs.setdefault("default_name", DEFAULT_NAMES["convert"])
        return self.post_form("/api/convert", "file", file_path, {"convertTo": convert_to}, **kwargs)

    def resize(
        self,
        file_path: Path,
        width: Optional[int] = None,
        height: Optional[int] = None,
        target_size_kb: Optional[int] = None,
        **kwargs,
    ) -> Path:
        kwargs.setdefault("default_name", DEFAULT_NAMES["resize"])
        data = {"width": width, "height": height, "targetSize": target_size_kb}
        return self.post_form("/api/resize", "image", file_path, data, **kwargs)

    def compress(self, file_path: Path, level: str = "medium", **kwargs) -> Path:
        kwargs.setdefault("default_name", DEFAULT_NAMES["compress"])
        return self.post_form("/api/compress", "file", file_path, {"level": level}, **kwargs)
