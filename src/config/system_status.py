"""
System Status — External tool availability.

Reports whether the converters the service shells out to are installed.
Image conversion, resizing and compression are in-process and always
available; audio/video and document conversion need these binaries.

Used by:
- CLI: `python -m src.main tools`
- HTTP: GET /api/health
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..tools.models import ToolProfiles

logger = logging.getLogger(__name__)


@dataclass
class ToolStatus:
    """Status of an external tool."""
    role: str
    name: str
    installed: bool
    path: Optional[str] = None
    install_hint: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "role": self.role,
            "name": self.name,
            "installed": self.installed,
            "path": self.path,
            "install_hint": self.install_hint,
        }


def check_tools(profiles: ToolProfiles) -> List[ToolStatus]:
    """Resolve each configured tool binary on PATH."""
    statuses = []
    for role, profile in profiles.all().items():
        path = shutil.which(profile.binary)
        statuses.append(ToolStatus(
            role=role,
            name=profile.name,
            installed=path is not None,
            path=path,
            install_hint=None if path else (profile.install_hint or None),
        ))
        if path is None:
            logger.debug(f"{role} tool '{profile.binary}' not found on PATH")
    return statuses
