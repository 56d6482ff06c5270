"""
Job Models — Pydantic schema for one conversion request.

A ConversionJob lives exactly as long as the request that created it.
There is no job table: the model exists so the pipeline has one typed
object to route, log, and mark complete.

## Status transitions

    pending → encoding → succeeded
                       ↘ failed

The terminal transition is made by the workspace finalizer, after the
job's temporary files are gone.
"""

from __future__ import annotations

import secrets
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Operation(str, Enum):
    """The three operations the service exposes."""

    CONVERT = "convert"
    RESIZE = "resize"
    COMPRESS = "compress"


class Strategy(str, Enum):
    """Encoder path selected by the dispatcher."""

    IMAGE = "image"                  # Pillow re-encode
    MEDIA = "media"                  # ffmpeg subprocess
    IMAGE_PDF = "image_pdf"          # Pillow PDF writer
    DOCUMENT_PDF = "document_pdf"    # LibreOffice subprocess
    RESIZE = "resize"                # size-constrained JPEG encoder
    ARCHIVE = "archive"              # single-entry ZIP


class JobStatus(str, Enum):
    PENDING = "pending"
    ENCODING = "encoding"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def _job_id() -> str:
    return f"J-{secrets.token_hex(4).upper()}"


class ConversionJob(BaseModel):
    """One request's conversion, resize, or compress task."""

    job_id: str = Field(default_factory=_job_id)
    operation: Operation
    input_path: Path
    original_filename: str
    content_type: str = "application/octet-stream"

    # Target parameters (which ones apply depends on the operation)
    target_format: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    target_size_kb: Optional[int] = None
    level: Optional[str] = None

    strategy: Optional[Strategy] = None
    output_path: Optional[Path] = None
    status: JobStatus = JobStatus.PENDING
    error: Optional[str] = None

    @property
    def original_stem(self) -> str:
        return Path(self.original_filename).stem or "file"

    @property
    def original_extension(self) -> str:
        return Path(self.original_filename).suffix.lower()

    @property
    def is_complete(self) -> bool:
        return self.status in (JobStatus.SUCCEEDED, JobStatus.FAILED)

    def fail(self, error: str) -> None:
        """Record a failure; the status flips once cleanup has run."""
        self.error = error

    def complete(self) -> None:
        """Terminal transition. Called after the workspace is released."""
        if self.is_complete:
            return
        if self.error or self.output_path is None:
            self.status = JobStatus.FAILED
        else:
            self.status = JobStatus.SUCCEEDED

    def log_extra(self) -> Dict[str, Any]:
        """Fields attached to log records for the JSON formatter."""
        return {
            "job_id": self.job_id,
            "operation": self.operation.value,
            "strategy": self.strategy.value if self.strategy else None,
        }
