"""
CLI job commands — upload a file to a running converter and save the result.

Usage:
    python -m src.main convert photo.png --to webp
    python -m src.main resize photo.jpg --width 800 --target-size 50
    python -m src.main compress report.pdf --level high --out ./archives
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import click

_server_option = click.option(
    "--server",
    envvar="CONVERTER_URL",
    default="http://127.0.0.1:5000",
    show_default=True,
    help="Converter base URL",
)
_out_option = click.option(
    "--out",
    "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help="Directory to save the result in",
)
_file_argument = click.argument(
    "file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)


def _run_upload(label: str, call: Callable) -> None:
    """Run one upload with a progress bar; report the saved path or the error."""
    from ..client.upload import UploadError

    with click.progressbar(length=100, label=label, show_percent=True) as bar:
        state = {"pct": 0}

        def on_progress(fraction: float) -> None:
            pct = int(fraction * 100)
            if pct > state["pct"]:
                bar.update(pct - state["pct"])
                state["pct"] = pct

        try:
            saved = call(on_progress)
        except UploadError as e:
            raise click.ClickException(str(e))

    click.secho(f"✅ Saved {saved}", fg="green")


def _client(server: str):
    from ..client.upload import UploadClient
    return UploadClient(server)


@click.command("convert")
@_file_argument
@click.option("--to", "convert_to", required=True, help="Target format (png, webp, mp3, pdf, ...)")
@_server_option
@_out_option
def convert_cmd(file: Path, convert_to: str, server: str, out_dir: Path) -> None:
    """Convert FILE to another format."""
    with _client(server) as client:
        _run_upload(
            f"Uploading {file.name}",
            lambda cb: client.convert(file, convert_to, dest_dir=out_dir, on_progress=cb),
        )


@click.command("resize")
@_file_argument
@click.option("--width", type=click.IntRange(min=1), default=None, help="Max width in px")
@click.option("--height", type=click.IntRange(min=1), default=None, help="Max height in px")
@click.option("--target-size", type=click.IntRange(min=1), default=None, help="Size budget in KB")
@_server_option
@_out_option
def resize_cmd(
    file: Path,
    width: Optional[int],
    height: Optional[int],
    target_size: Optional[int],
    server: str,
    out_dir: Path,
) -> None:
    """Resize an image (always saved as JPEG)."""
    with _client(server) as client:
        _run_upload(
            f"Uploading {file.name}",
            lambda cb: client.resize(
                file, width, height, target_size, dest_dir=out_dir, on_progress=cb,
            ),
        )


@click.command("compress")
@_file_argument
@click.option(
    "--level",
    type=click.Choice(["low", "medium", "high"], case_sensitive=False),
    default="medium",
    show_default=True,
)
@_server_option
@_out_option
def compress_cmd(file: Path, level: str, server: str, out_dir: Path) -> None:
    """Wrap FILE in a ZIP archive."""
    with _client(server) as client:
        _run_upload(
            f"Uploading {file.name}",
            lambda cb: client.compress(file, level, dest_dir=out_dir, on_progress=cb),
        )
