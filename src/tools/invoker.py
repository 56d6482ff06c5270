"""
Tool Invoker — Run one external converter and locate its output.

Contract:
- argv list, no shell: paths are opaque arguments
- exactly one process per call, awaited to completion
- zero exit status is the only success
- any failure → ToolInvocationError with the stderr tail as detail
- the output file is located, never assumed

Timeouts are optional. With ``timeout=None`` an unresponsive tool blocks
its request indefinitely; with a value, the process is killed when it
expires and the call fails.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

from ..engine.errors import ToolInvocationError
from ..engine.workspace import TempWorkspace
from .models import ToolProfile

logger = logging.getLogger(__name__)

# Keep only the end of stderr; ffmpeg prints its banner first and the
# actual error last.
STDERR_TAIL_CHARS = 2000


def _tail(text: Optional[str]) -> str:
    text = (text or "").strip()
    return text[-STDERR_TAIL_CHARS:]


def run_tool(
    profile: ToolProfile,
    input_path: Path,
    output_path: Path,
    output_format: str,
    *,
    workspace: Optional[TempWorkspace] = None,
    timeout: Optional[float] = None,
) -> Path:
    """
    Run ``profile`` on ``input_path`` and return the path it produced.

    Args:
        profile: Command template for the tool.
        input_path: Stored upload.
        output_path: Where the caller wants the result.
        output_format: Target extension without dot (e.g. "pdf", "mp3").
        workspace: If given, alternate output paths and scratch
            directories are registered for release before the process
            starts.
        timeout: Seconds before the process is killed. None = wait forever.

    Raises:
        ToolInvocationError: Spawn failure, non-zero exit, timeout, or no
            output file at any known location.
    """
    argv = profile.build_argv(input_path, output_path, output_format)
    candidates = profile.candidate_outputs(input_path, output_path, output_format)
    if workspace is not None:
        for path in candidates + profile.scratch_dirs(input_path, output_path):
            workspace.track(path)

    logger.info(f"Running {profile.name}: {input_path.name} → .{output_format}")
    logger.debug(f"argv: {argv}")

    try:
        proc = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ToolInvocationError(profile.name, detail=f"{profile.binary} not found: {e}")
    except subprocess.TimeoutExpired as e:
        stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else e.stderr
        raise ToolInvocationError(
            profile.name,
            detail=f"timed out after {timeout}s; {_tail(stderr)}",
        )
    except OSError as e:
        raise ToolInvocationError(profile.name, detail=f"could not start: {e}")

    if proc.returncode != 0:
        raise ToolInvocationError(
            profile.name,
            detail=_tail(proc.stderr) or _tail(proc.stdout) or "no diagnostic output",
            returncode=proc.returncode,
        )

    for path in candidates:
        if path.exists():
            if path != output_path:
                logger.debug(f"{profile.name} wrote alternate output {path.name}")
            return path

    raise ToolInvocationError(
        profile.name,
        detail=f"exit 0 but no output at {', '.join(p.name for p in candidates)}",
        returncode=0,
    )
