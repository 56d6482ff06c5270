"""
Core API — Service health.

Blueprint: core_bp
Prefix: /api
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..config.system_status import check_tools
from ..engine.dispatch import IMAGE_TARGETS, MEDIA_TARGETS

core_bp = Blueprint("core", __name__)


@core_bp.route("/health", methods=["GET"])
def api_health():
    """
    Report which conversions this instance can perform.

    Returns:
    - status: "ok" or "degraded" (an external tool is missing)
    - tools: per-tool installation status
    - targets: supported convertTo values per family
    """
    tools = check_tools(current_app.config["TOOL_PROFILES"])
    degraded = any(not t.installed for t in tools)
    return jsonify({
        "status": "degraded" if degraded else "ok",
        "tools": [t.to_dict() for t in tools],
        "targets": {
            "image": sorted(IMAGE_TARGETS),
            "media": sorted(MEDIA_TARGETS),
            "document": ["pdf"],
        },
    })
