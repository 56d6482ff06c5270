"""
File Converter — CLI Entry Point

Usage:
    python -m src.main serve [--port N]
    python -m src.main tools
    python -m src.main convert FILE --to FMT
    python -m src.main resize FILE [--width W] [--height H] [--target-size KB]
    python -m src.main compress FILE [--level low|medium|high]
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from pathlib import Path
from dotenv import load_dotenv

_project_root = Path(__file__).parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

import click

from .logging_config import setup_logging
from .cli.jobs import compress_cmd, convert_cmd, resize_cmd
from .cli.ops import serve, tools

# Initialize logging
setup_logging()


@click.group()
def cli() -> None:
    """File Converter — convert, resize, and compress files."""


cli.add_command(serve)
cli.add_command(tools)
cli.add_command(convert_cmd)
cli.add_command(resize_cmd)
cli.add_command(compress_cmd)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
