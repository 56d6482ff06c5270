"""
Converter API — Convert, resize, and compress endpoints.

Blueprint: convert_bp
Prefix: /api
Routes:
    POST /api/convert     # file + convertTo → converted file
    POST /api/resize      # image + width/height/targetSize → JPEG
    POST /api/compress    # file + level → single-entry ZIP

Every handler runs inside a TempWorkspace block. A failure anywhere in
the block releases the stored upload (and any output) before the error
handler renders the response; on success the streamed response takes
over cleanup.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, request

from ..engine.job import run_job, start_job
from ..engine.workspace import TempWorkspace
from ..models.job import Operation
from .helpers import form_int, require_file, stream_artifact, upload_dir

convert_bp = Blueprint("convert", __name__)
logger = logging.getLogger(__name__)


def _run(workspace, job):
    return run_job(
        job,
        workspace,
        current_app.config["TOOL_PROFILES"],
        tool_timeout=current_app.config["CONVERTER"].tool_timeout,
    )


@convert_bp.route("/convert", methods=["POST"])
def api_convert():
    """
    Convert a file to another format.

    Accepts multipart/form-data:
        file: The file to convert (required)
        convertTo: Target format, case-insensitive (jpg, png, webp, tiff,
                   avif, mp3, wav, ogg, mp4, mov, webm, mkv, pdf)
    """
    with TempWorkspace(upload_dir()) as workspace:
        upload = require_file("file", "No file uploaded")
        job = start_job(
            workspace,
            Operation.CONVERT,
            upload.filename,
            upload.mimetype,
            upload.save,
            target_format=(request.form.get("convertTo") or "").strip().lower(),
        )
        result = _run(workspace, job)
        return stream_artifact(result, workspace)


@convert_bp.route("/resize", methods=["POST"])
def api_resize():
    """
    Resize an image, optionally under a size budget. Always returns JPEG.

    Accepts multipart/form-data:
        image: The image (required)
        width, height: Bounding box in pixels (optional, never upscales)
        targetSize: Size budget in KB (optional)
    """
    with TempWorkspace(upload_dir()) as workspace:
        upload = require_file("image", "No image uploaded")
        width = form_int("width")
        height = form_int("height")
        target_size = form_int("targetSize")
        job = start_job(
            workspace,
            Operation.RESIZE,
            upload.filename,
            upload.mimetype,
            upload.save,
            width=width,
            height=height,
            target_size_kb=target_size,
        )
        result = _run(workspace, job)
        return stream_artifact(result, workspace)


@convert_bp.route("/compress", methods=["POST"])
def api_compress():
    """
    Wrap a file in a ZIP archive.

    Accepts multipart/form-data:
        file: The file (required)
        level: low | medium | high (optional, default medium)
    """
    with TempWorkspace(upload_dir()) as workspace:
        upload = require_file("file", "No file uploaded")
        job = start_job(
            workspace,
            Operation.COMPRESS,
            upload.filename,
            upload.mimetype,
            upload.save,
            level=request.form.get("level") or "medium",
        )
        result = _run(workspace, job)
        return stream_artifact(result, workspace)
