"""
Tool Loader — Load external tool profiles from YAML.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import ToolProfiles

logger = logging.getLogger(__name__)


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return its contents."""
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_tool_profiles(path: Optional[Path] = None) -> ToolProfiles:
    """
    Load tool profiles, falling back to the built-in defaults.

    Args:
        path: tools.yaml location. Missing file → defaults.

    Raises:
        pydantic.ValidationError: The file exists but is malformed.
    """
    if path is None or not Path(path).exists():
        if path is not None:
            logger.debug(f"No tool profile file at {path}, using defaults")
        return ToolProfiles()

    data = load_yaml(Path(path))
    profiles = ToolProfiles(**data)
    logger.info(
        f"Loaded tool profiles from {path} "
        f"(transcoder={profiles.transcoder.binary}, document={profiles.document.binary})"
    )
    return profiles
