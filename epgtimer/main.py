"""
EpgTimer EMWUI command line client

Entry point: builds the Typer application, resolves settings once per
invocation and registers the command handlers.
"""
import logging

import typer

from epgtimer import __version__
from epgtimer import commands
from epgtimer.config import load_settings, setup_logging
from epgtimer.errors import EMWUIError


logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Command line client for EpgTimer's EMWUI web interface",
    no_args_is_help=True,
    add_completion=False,
)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"epgtimer {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    endpoint: str | None = typer.Option(
        None, "--endpoint", "-e", help="EMWUI server endpoint (overrides EMWUI_ENDPOINT env var)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_show_version, is_eager=True, help="Show version and exit"
    ),
):
    """Manage EpgTimer automatic recording rules and browse channels, EPG, recordings and reservations."""
    try:
        settings = load_settings(endpoint=endpoint)
    except EMWUIError as exc:
        commands.report_failure(exc)

    setup_logging("DEBUG" if verbose else settings.log_level)
    logger.debug(f"Using EMWUI endpoint: {settings.endpoint or 'not set'}")
    ctx.obj = settings


app.command("list")(commands.list_rules)
app.command("add")(commands.add_rule)
app.command("delete")(commands.delete_rule)
app.command("channels")(commands.list_channels)
app.command("recordings")(commands.list_recordings)
app.command("reservations")(commands.list_reservations)
app.command("epg")(commands.list_program_guide)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
