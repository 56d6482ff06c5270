"""
Conversion Errors — Failure taxonomy for conversion jobs.

Every failure a job can hit maps to one of these classes. Each carries
the HTTP status for its failure class and a short public message that is
safe to show to the caller. Diagnostics (tool stderr, codec exceptions)
stay in ``detail`` and are only ever logged.

## Classes

- InputMissing        400  no file attached
- InvalidParameter    400  malformed form field
- UnsupportedTarget   400  dispatcher found no matching rule
- ToolInvocationError 500  external process failed
- EncodeError         500  in-process codec failed
- StorageError        500  temporary storage read/write failed
"""

from __future__ import annotations

from typing import Optional


class ConversionError(Exception):
    """Base class for all job failures."""

    status_code: int = 500
    default_message: str = "Conversion error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.public_message = message or self.default_message
        self.detail = detail
        super().__init__(self.public_message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.public_message}: {self.detail}"
        return self.public_message


class InputMissing(ConversionError):
    status_code = 400
    default_message = "No file uploaded"


class InvalidParameter(ConversionError):
    status_code = 400
    default_message = "Invalid parameter"


class UnsupportedTarget(ConversionError):
    status_code = 400
    default_message = "Unsupported conversion target"


class ToolInvocationError(ConversionError):
    """An external tool exited non-zero, could not start, or produced nothing."""

    status_code = 500
    default_message = "Conversion failed"

    def __init__(
        self,
        tool: str,
        detail: Optional[str] = None,
        returncode: Optional[int] = None,
    ):
        self.tool = tool
        self.returncode = returncode
        super().__init__(f"Conversion failed ({tool} error)", detail)


class EncodeError(ConversionError):
    status_code = 500
    default_message = "Conversion error"


class StorageError(ConversionError):
    status_code = 500
    default_message = "Storage error"
