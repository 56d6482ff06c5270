"""
Server shared helpers — form parsing and the streaming response.

## Content-Disposition

Download names are sent twice: an ASCII-only quoted fallback for old
clients, and the RFC 5987 extended parameter carrying the real UTF-8
name percent-encoded:

    attachment; filename="resume_.pdf"; filename*=UTF-8''r%C3%A9sum%C3%A9.pdf

Clients that understand ``filename*`` must prefer it.
"""

from __future__ import annotations

import logging
import unicodedata
from typing import Optional
from urllib.parse import quote

from flask import Response, current_app, request, send_file
from werkzeug.datastructures import FileStorage

from ..engine.errors import InputMissing, InvalidParameter
from ..engine.job import JobResult
from ..engine.workspace import TempWorkspace

logger = logging.getLogger(__name__)

# RFC 5987 attr-char minus the ones quote() already leaves alone
_ATTR_SAFE = "!#$&+^`|~"


def ascii_fallback(filename: str) -> str:
    """ASCII approximation of a filename, safe inside a quoted-string."""
    decomposed = unicodedata.normalize("NFKD", filename)
    chars = []
    for ch in decomposed:
        if unicodedata.combining(ch):
            continue
        if ch in '"\\' or not (32 <= ord(ch) < 127):
            chars.append("_")
        else:
            chars.append(ch)
    return "".join(chars) or "download"


def content_disposition(filename: str, disposition: str = "attachment") -> str:
    """Build a Content-Disposition header with both filename forms."""
    encoded = quote(filename, safe=_ATTR_SAFE)
    return (
        f'{disposition}; filename="{ascii_fallback(filename)}"; '
        f"filename*=UTF-8''{encoded}"
    )


def stream_artifact(result: JobResult, workspace: TempWorkspace) -> Response:
    """
    Stream a finished artifact and hand workspace cleanup to the response.

    The workspace is released when the WSGI server closes the response:
    after the last chunk is sent, on a send error, or on disconnect.
    """
    response = send_file(
        result.path,
        mimetype=result.mimetype,
        as_attachment=True,
        download_name=result.download_name,
        conditional=False,
        etag=False,
        max_age=0,
    )
    response.headers["Content-Disposition"] = content_disposition(result.download_name)
    # send_file enables passthrough, which hands the raw file wrapper to the
    # server and skips Response.close(); the on-close release needs it.
    response.direct_passthrough = False
    response.call_on_close(workspace.hand_off())
    return response


def upload_dir():
    return current_app.config["CONVERTER"].upload_dir


def require_file(field: str, message: str) -> FileStorage:
    """Return the uploaded file in ``field`` or raise InputMissing."""
    file = request.files.get(field)
    if file is None or not file.filename:
        raise InputMissing(message)
    return file


def form_int(name: str) -> Optional[int]:
    """Optional positive integer form field. Empty → None."""
    raw = (request.form.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise InvalidParameter(f"Invalid {name}", detail=f"{name}={raw!r}")
    if value <= 0:
        raise InvalidParameter(f"Invalid {name}", detail=f"{name}={value}")
    return value
