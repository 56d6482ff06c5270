"""
Converter Server — HTTP surface for the conversion pipeline.

Usage:
    python -m src.main serve
    # Listens on http://127.0.0.1:5000

Endpoints:
    POST /api/convert
    POST /api/resize
    POST /api/compress
    GET  /api/health
"""

from .server import create_app, run_server

__all__ = ["create_app", "run_server"]
