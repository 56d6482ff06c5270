"""
Temp Workspace — Per-request temporary file lifecycle.

Every file a job creates (the stored upload, the encoder output, any
alternate output or scratch directory a tool writes on its own) is registered here the moment
its path exists, and unlinked by ``release_all()``.

## Lifecycle

    with TempWorkspace(upload_dir) as workspace:
        input_path = workspace.allocate("upload", ".png")
        ...
        response.call_on_close(workspace.hand_off())
        return response

Leaving the block without ``hand_off()`` (rejection, encoder failure,
unexpected exception) releases everything on the spot. After a hand-off
the response owns cleanup: ``release_all`` runs when the stream closes,
whether it finished, failed, or the client went away.

## Naming

    {base}-{time_ns}-{random}{ext}
    Example: upload-1760888400123456789-482913077.png

The storage root is shared between concurrent requests; uniqueness comes
from the generated names alone.
"""

from __future__ import annotations

import logging
import secrets
import shutil
import time
from pathlib import Path
from typing import Callable, List, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class TempWorkspace:
    """Tracks the temporary paths of one job and guarantees their removal."""

    def __init__(self, root: PathLike):
        self.root = Path(root)
        self._paths: List[Path] = []
        self._finalizers: List[Callable[[], None]] = []
        self._handed_off = False
        self._released = False

    # ── Allocation ───────────────────────────────────────────

    def allocate(self, base_name: str = "tmp", extension: str = "") -> Path:
        """Return a fresh path under the root, already registered for release."""
        self.root.mkdir(parents=True, exist_ok=True)
        if extension and not extension.startswith("."):
            extension = f".{extension}"
        suffix = f"{time.time_ns()}-{secrets.randbelow(10**9)}"
        path = self.root / f"{base_name}-{suffix}{extension.lower()}"
        self.track(path)
        return path

    def track(self, path: PathLike) -> Path:
        """Register a path produced elsewhere (e.g. by an external tool)."""
        path = Path(path)
        if path not in self._paths:
            self._paths.append(path)
        return path

    @property
    def paths(self) -> List[Path]:
        return list(self._paths)

    # ── Release ──────────────────────────────────────────────

    @staticmethod
    def release(path: PathLike) -> None:
        """Remove a file or directory tree if present. Never raises."""
        path = Path(path)
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temp file {path}: {e}")

    def add_finalizer(self, fn: Callable[[], None]) -> None:
        """Run ``fn`` once, after every tracked path has been released."""
        self._finalizers.append(fn)

    def release_all(self) -> None:
        if self._released:
            return
        self._released = True

        for path in self._paths:
            self.release(path)
        logger.debug(f"Released {len(self._paths)} temp path(s)")

        for fn in self._finalizers:
            try:
                fn()
            except Exception as e:
                logger.error(f"Workspace finalizer failed: {e}", exc_info=True)

    def hand_off(self) -> Callable[[], None]:
        """Transfer cleanup to the caller; returns the release callable."""
        self._handed_off = True
        return self.release_all

    # ── Context manager ──────────────────────────────────────

    def __enter__(self) -> "TempWorkspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        if exc_type is not None or not self._handed_off:
            self.release_all()
        return None
