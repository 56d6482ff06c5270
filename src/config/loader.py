"""
Config Loader — Load service configuration from env vars.

Supports two modes:
1. Master JSON key: Single CONVERTER_CONFIG env var with all settings
2. Individual keys: Separate env vars per setting (override the master)

## Usage

    # Option 1: Master config
    export CONVERTER_CONFIG='{"upload_dir": "/var/tmp/conv", "tool_timeout": 300}'

    # Option 2: Individual keys
    export CONVERTER_UPLOAD_DIR=/var/tmp/conv
    export CONVERTER_TOOL_TIMEOUT=300

## Variables

- CONVERTER_UPLOAD_DIR: Temporary storage root (default: ./uploads)
- CONVERTER_MAX_UPLOAD_MB: Request body limit in MB (default: 200)
- CONVERTER_TOOLS_FILE: Tool profile YAML (default: ./tools.yaml)
- CONVERTER_TOOL_TIMEOUT: Seconds before an external tool is killed
  (default: unset = no timeout)
- CONVERTER_HOST: Bind address (default: 127.0.0.1)
- PORT: Listen port (default: 5000)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent


@dataclass
class ServiceConfig:
    """All service settings in one place."""

    upload_dir: Path = field(default_factory=lambda: PROJECT_ROOT / "uploads")
    max_upload_mb: int = 200
    tools_file: Optional[Path] = field(default_factory=lambda: PROJECT_ROOT / "tools.yaml")
    tool_timeout: Optional[float] = None
    host: str = "127.0.0.1"
    port: int = 5000

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def to_dict(self) -> Dict[str, Any]:
        return {
            "upload_dir": str(self.upload_dir),
            "max_upload_mb": self.max_upload_mb,
            "tools_file": str(self.tools_file) if self.tools_file else None,
            "tool_timeout": self.tool_timeout,
            "host": self.host,
            "port": self.port,
        }


def _as_int(name: str, value: Any, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        logger.error(f"Invalid {name}={value!r}, using {default}")
        return default
    if parsed <= 0:
        logger.error(f"{name} must be positive (got {parsed}), using {default}")
        return default
    return parsed


def _as_timeout(value: Any) -> Optional[float]:
    if value in (None, "", "0", 0, "none"):
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.error(f"Invalid tool timeout {value!r}, external tools will not time out")
        return None
    return timeout if timeout > 0 else None


def load_config() -> ServiceConfig:
    """
    Load configuration from master key or individual env vars.

    Priority:
    1. Individual environment variables
    2. CONVERTER_CONFIG (master JSON)
    3. Defaults

    Returns:
        ServiceConfig
    """
    data: Dict[str, Any] = {}

    master_config = os.environ.get("CONVERTER_CONFIG")
    if master_config:
        try:
            data = json.loads(master_config)
            logger.info("Loaded configuration from CONVERTER_CONFIG")
        except json.JSONDecodeError as e:
            logger.error(f"Invalid CONVERTER_CONFIG JSON: {e}")
            data = {}

    env_map = {
        "upload_dir": "CONVERTER_UPLOAD_DIR",
        "max_upload_mb": "CONVERTER_MAX_UPLOAD_MB",
        "tools_file": "CONVERTER_TOOLS_FILE",
        "tool_timeout": "CONVERTER_TOOL_TIMEOUT",
        "host": "CONVERTER_HOST",
        "port": "PORT",
    }
    for key, env_name in env_map.items():
        value = os.environ.get(env_name)
        if value:
            data[key] = value

    config = ServiceConfig()
    if data.get("upload_dir"):
        config.upload_dir = Path(data["upload_dir"]).expanduser()
    if data.get("max_upload_mb") is not None:
        config.max_upload_mb = _as_int("max_upload_mb", data["max_upload_mb"], config.max_upload_mb)
    if data.get("tools_file"):
        config.tools_file = Path(data["tools_file"]).expanduser()
    if "tool_timeout" in data:
        config.tool_timeout = _as_timeout(data["tool_timeout"])
    if data.get("host"):
        config.host = str(data["host"])
    if data.get("port") is not None:
        config.port = _as_int("port", data["port"], config.port)

    return config
