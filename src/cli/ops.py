"""
CLI ops commands — server and tool status.

Usage:
    python -m src.main serve [--host H] [--port N] [--debug]
    python -m src.main tools [--json]
"""

from __future__ import annotations

from typing import Optional

import click


@click.command("serve")
@click.option("--host", default=None, help="Bind address (default: CONVERTER_HOST or 127.0.0.1)")
@click.option("--port", type=int, default=None, help="Port (default: PORT or 5000)")
@click.option("--debug", is_flag=True, help="Enable debug mode")
def serve(host: Optional[str], port: Optional[int], debug: bool) -> None:
    """Run the conversion HTTP service."""
    from ..server import run_server

    if debug:
        from ..logging_config import setup_logging
        setup_logging(level="DEBUG")

    run_server(host=host, port=port, debug=debug)


@click.command("tools")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tools(as_json: bool) -> None:
    """Check which external converters are installed."""
    from ..config.loader import load_config
    from ..config.system_status import check_tools
    from ..tools.loader import load_tool_profiles

    config = load_config()
    statuses = check_tools(load_tool_profiles(config.tools_file))

    if as_json:
        import json
        click.echo(json.dumps([s.to_dict() for s in statuses], indent=2))
        return

    click.echo()
    click.secho("External tools:", bold=True)
    for status in statuses:
        if status.installed:
            click.echo("  ✅ ", nl=False)
            click.secho(status.name, fg="green", bold=True, nl=False)
            click.echo(f" ({status.role}): {status.path}")
        else:
            click.echo("  ❌ ", nl=False)
            click.secho(status.name, fg="red", bold=True, nl=False)
            hint = f" — {status.install_hint}" if status.install_hint else ""
            click.echo(f" ({status.role}): not found{hint}")
    click.echo()

    missing = [s for s in statuses if not s.installed]
    if missing:
        click.secho(
            f"{len(missing)} tool(s) missing: the matching conversions will fail with 500.",
            fg="yellow",
        )
