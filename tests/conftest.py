"""
Shared fixtures for converter tests.

Provides a Flask test app whose storage root is a temporary directory,
plus Pillow-generated images so tests never depend on files on disk.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest

pytest.importorskip("flask")
pytest.importorskip("PIL")


# ── Image helpers ────────────────────────────────────────────────────


def make_image_bytes(
    width: int = 64,
    height: int = 48,
    fmt: str = "PNG",
    mode: str = "RGB",
    noise: bool = False,
) -> bytes:
    """Create an image in memory. ``noise`` gives JPEG something to compress."""
    from PIL import Image

    if noise:
        channels = [Image.effect_noise((width, height), 64 + 20 * i) for i in range(3)]
        img = Image.merge("RGB", channels)
        if mode != "RGB":
            img = img.convert(mode)
    else:
        img = Image.new("RGBA", (width, height), (200, 30, 30, 128))
        if mode != "RGBA":
            img = img.convert(mode)

    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    d = tmp_path / "uploads"
    d.mkdir()
    return d


@pytest.fixture
def config(upload_dir: Path, tmp_path: Path):
    from src.config.loader import ServiceConfig

    return ServiceConfig(
        upload_dir=upload_dir,
        max_upload_mb=5,
        tools_file=tmp_path / "missing-tools.yaml",
    )


@pytest.fixture
def app(config):
    """Flask test app with an isolated storage root and default tool profiles."""
    from src.server.server import create_app

    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes(64, 48, "PNG")


@pytest.fixture
def make_image():
    """Factory fixture wrapping make_image_bytes."""
    return make_image_bytes


def stored_files(upload_dir: Path) -> list:
    """Everything left in the storage root."""
    return sorted(p.name for p in upload_dir.iterdir())
