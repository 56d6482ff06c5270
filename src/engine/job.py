"""
Job Pipeline — Intake, dispatch, and encode for one request.

Each request:
1. Stores the upload at a fresh workspace path (start_job)
2. Selects a strategy (dispatch.select_strategy)
3. Runs the strategy: Pillow, ffmpeg, LibreOffice, or zipfile (run_job)
4. Returns a JobResult for the response layer to stream

Cleanup is not handled here. The workspace owns every path and releases
them when the request's ``with`` block fails or the response closes; the
job's terminal status is set by a workspace finalizer after that.

## Usage

    with TempWorkspace(upload_dir) as workspace:
        job = start_job(workspace, Operation.CONVERT, "photo.png",
                        "image/png", upload.save, target_format="webp")
        result = run_job(job, workspace, profiles)
        ...
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from ..models.job import ConversionJob, JobStatus, Operation, Strategy
from ..tools.invoker import run_tool
from ..tools.models import ToolProfiles
from .archive import create_archive
from .dispatch import normalize_target, select_strategy
from .errors import ConversionError, StorageError
from .imaging import convert_image, image_to_pdf, resize_image
from .workspace import TempWorkspace

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    """A finished artifact, ready to stream."""

    path: Path
    download_name: str
    mimetype: str

    @property
    def size_bytes(self) -> int:
        return self.path.stat().st_size


def _guess_mimetype(name: str) -> str:
    return mimetypes.guess_type(name)[0] or "application/octet-stream"


# ── Intake ───────────────────────────────────────────────────


def start_job(
    workspace: TempWorkspace,
    operation: Operation,
    original_filename: str,
    content_type: Optional[str],
    save: Callable[[Path], None],
    **targets,
) -> ConversionJob:
    """
    Store the upload and create its job.

    Args:
        workspace: Workspace that will own the stored file.
        operation: Requested operation.
        original_filename: Client-supplied filename.
        content_type: Declared MIME type, if any.
        save: Writes the upload to the given path.
        **targets: target_format / width / height / target_size_kb / level.

    Raises:
        StorageError: The upload could not be written.
    """
    extension = Path(original_filename).suffix
    input_path = workspace.allocate("upload", extension)
    try:
        save(input_path)
    except OSError as e:
        raise StorageError(detail=f"could not store upload: {e}")

    job = ConversionJob(
        operation=operation,
        input_path=input_path,
        original_filename=original_filename,
        content_type=content_type or _guess_mimetype(original_filename),
        **targets,
    )

    def _finish() -> None:
        job.complete()
        level = logging.INFO if job.status is JobStatus.SUCCEEDED else logging.WARNING
        logger.log(
            level,
            f"Job {job.job_id} {job.status.value} ({job.operation.value}, {job.original_filename})",
            extra=job.log_extra(),
        )

    workspace.add_finalizer(_finish)
    logger.debug(
        f"Job {job.job_id} stored {original_filename} as {input_path.name}",
        extra=job.log_extra(),
    )
    return job


# ── Strategies ───────────────────────────────────────────────


def _convert_image(job, workspace, profiles, timeout) -> JobResult:
    target = normalize_target(job.target_format)
    out = workspace.allocate("output", f".{target}")
    job.output_path = convert_image(job.input_path, out, target)
    return JobResult(out, f"{job.original_stem}.{target}", _guess_mimetype(f"x.{target}"))


def _convert_media(job, workspace, profiles, timeout) -> JobResult:
    target = normalize_target(job.target_format)
    out = workspace.allocate("output", f".{target}")
    job.output_path = run_tool(
        profiles.transcoder, job.input_path, out, target,
        workspace=workspace, timeout=timeout,
    )
    name = f"{job.original_stem}.{target}"
    return JobResult(job.output_path, name, _guess_mimetype(name))


def _image_to_pdf(job, workspace, profiles, timeout) -> JobResult:
    out = workspace.allocate("output", ".pdf")
    job.output_path = image_to_pdf(job.input_path, out)
    return JobResult(out, f"{job.original_stem}.pdf", "application/pdf")


def _document_to_pdf(job, workspace, profiles, timeout) -> JobResult:
    out = workspace.allocate("output", ".pdf")
    job.output_path = run_tool(
        profiles.document, job.input_path, out, "pdf",
        workspace=workspace, timeout=timeout,
    )
    return JobResult(job.output_path, f"{job.original_stem}.pdf", "application/pdf")


def _resize(job, workspace, profiles, timeout) -> JobResult:
    out = workspace.allocate("output", ".jpg")
    resize_image(
        job.input_path,
        out,
        width=job.width,
        height=job.height,
        target_size_kb=job.target_size_kb,
    )
    job.output_path = out
    return JobResult(out, f"{job.original_stem}-resized.jpg", "image/jpeg")


def _archive(job, workspace, profiles, timeout) -> JobResult:
    out = workspace.allocate("output", ".zip")
    job.output_path = create_archive(job.input_path, out, job.original_filename, job.level)
    return JobResult(out, f"{job.original_stem}.zip", "application/zip")


STRATEGY_HANDLERS: Dict[Strategy, Callable[..., JobResult]] = {
    Strategy.IMAGE: _convert_image,
    Strategy.MEDIA: _convert_media,
    Strategy.IMAGE_PDF: _image_to_pdf,
    Strategy.DOCUMENT_PDF: _document_to_pdf,
    Strategy.RESIZE: _resize,
    Strategy.ARCHIVE: _archive,
}


# ── Run ──────────────────────────────────────────────────────


def run_job(
    job: ConversionJob,
    workspace: TempWorkspace,
    profiles: Optional[ToolProfiles] = None,
    *,
    tool_timeout: Optional[float] = None,
) -> JobResult:
    """
    Dispatch and run a job. The output is complete on disk when this returns.

    Raises:
        ConversionError: Any failure; the job is marked for failure first.
    """
    profiles = profiles or ToolProfiles()

    try:
        job.strategy = select_strategy(
            job.operation, job.target_format, job.original_filename, job.content_type
        )
        job.status = JobStatus.ENCODING
        logger.info(
            f"Job {job.job_id}: {job.operation.value} {job.original_filename} "
            f"via {job.strategy.value}",
            extra=job.log_extra(),
        )
        return STRATEGY_HANDLERS[job.strategy](job, workspace, profiles, tool_timeout)

    except ConversionError as e:
        job.fail(str(e))
        raise
    except OSError as e:
        job.fail(str(e))
        raise StorageError(detail=str(e)) from e
    except Exception as e:
        job.fail(f"{type(e).__name__}: {e}")
        raise
