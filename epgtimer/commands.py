"""
Command handlers

Each handler resolves its inputs, talks to EMWUI through an EMWUIClient, applies
client-side filters and hands the result to the renderers. Failures surface as
EMWUIError and are reported once by report_errors.
"""
import functools
import logging
from typing import Iterable, Sequence

import typer

from epgtimer.config import EMWUISettings
from epgtimer.errors import EMWUIError, InvalidInputError, InvalidRuleIdError
from epgtimer.formatters import RENDERERS, render, validate_format
from epgtimer.schemas import AutoAddRuleRequest, ChannelRef
from epgtimer.services.emwui_client import EMWUIClient
from epgtimer.services.epg_fetch_service import fetch_program_guides
from epgtimer.services.filters import (
    ChannelFilter,
    ProgramFilter,
    RecordingFilter,
    ReservationFilter,
    RuleFilter,
    apply_filter,
)
from epgtimer.utils.file_operations import read_channel_list, write_output


logger = logging.getLogger(__name__)

SUMMARY_CHANNEL_LIMIT = 10

FORMAT_HELP = "Output format: table, json, csv, tsv"
OUTPUT_HELP = "Output file path (default: stdout)"


def build_client(settings: EMWUISettings) -> EMWUIClient:
    """Create a client for the configured endpoint"""
    return EMWUIClient(settings.require_endpoint(), timeout=settings.request_timeout_sec)


def report_failure(exc: EMWUIError) -> None:
    """Print the error and its hint to stderr and exit with status 1"""
    logger.debug(f"Command failed with {exc.kind.value} error", exc_info=exc)
    typer.echo(f"Error: {exc.message}", err=True)
    if exc.hint:
        typer.echo(f"\n{exc.hint}", err=True)
    raise typer.Exit(code=1)


def report_errors(func):
    """Turn EMWUIError raised by a command into report_failure"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except EMWUIError as exc:
            report_failure(exc)
    return wrapper


def _settings(ctx: typer.Context) -> EMWUISettings:
    return ctx.obj


def _parse_channel(value: str | None) -> ChannelRef | None:
    return ChannelRef.parse(value) if value else None


def _emit(kind: str, items: Sequence, output_format: str, output: str | None, empty_notice: str, filtered: bool) -> None:
    """Render items to stdout or to a file"""
    if not items and filtered:
        typer.echo(empty_notice)
        return

    content = render(kind, items, output_format)

    if output:
        path = write_output(output, content)
        typer.echo(f"Successfully exported {len(items)} {RENDERERS[kind].noun} to {path}")
    else:
        typer.echo(content, nl=False)


def _echo_progress(index: int, total: int, channel: ChannelRef) -> None:
    typer.echo(f"  [{index}/{total}] Retrieving {channel}...", err=True)


def _split_channels(values: Iterable[str]) -> list[str]:
    """Flatten repeated, comma-separated --serviceList values"""
    channels = []
    for value in values:
        channels.extend(part.strip() for part in value.split(",") if part.strip())
    return channels


@report_errors
def list_rules(
    ctx: typer.Context,
    and_key: str | None = typer.Option(None, "--andKey", help="Filter by search keyword (substring match, case-insensitive)"),
    channel: str | None = typer.Option(None, "--channel", help="Filter by channel (ONID-TSID-SID format, e.g., 32736-32736-1024)"),
    enabled: bool = typer.Option(False, "--enabled", help="Show only enabled rules"),
    disabled: bool = typer.Option(False, "--disabled", help="Show only disabled rules"),
    regex: bool = typer.Option(False, "--regex", help="Show only regex-enabled rules"),
    output_format: str = typer.Option("table", "--format", help=FORMAT_HELP),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
):
    """List automatic recording rules."""
    validate_format(output_format)
    criteria = RuleFilter(
        and_key=and_key,
        channel=_parse_channel(channel),
        enabled_only=enabled,
        disabled_only=disabled,
        regex_only=regex,
    )

    with build_client(_settings(ctx)) as client:
        envelope = client.list_rules()

    rules = apply_filter(envelope.items, criteria)
    _emit(
        "rules", rules, output_format, output,
        "No automatic recording rules match the specified filters.",
        criteria.has_filters(),
    )


@report_errors
def add_rule(
    ctx: typer.Context,
    and_key: str = typer.Option(..., "--andKey", help="Search keywords (required, title must contain these keywords)"),
    not_key: str = typer.Option("", "--notKey", help="Exclusion keywords (optional, title must not contain these keywords)"),
    service_list: list[str] | None = typer.Option(None, "--serviceList", help="Channel list in ONID-TSID-SID format (comma-separated, repeatable)"),
    service_list_file: str | None = typer.Option(None, "--serviceListFile", help="File containing channel list (one channel per line in ONID-TSID-SID format)"),
):
    """Create an automatic recording rule."""
    channels = _split_channels(service_list or [])
    if service_list_file:
        channels.extend(str(channel) for channel in read_channel_list(service_list_file))

    request = AutoAddRuleRequest(and_key=and_key, not_key=not_key, service_list=channels)

    with build_client(_settings(ctx)) as client:
        client.create_rule(request)

    typer.echo("Automatic recording rule created successfully")
    typer.echo(f"\nSearch keywords: {request.and_key}")
    if request.not_key:
        typer.echo(f"Exclusion keywords: {request.not_key}")
    typer.echo(f"Channels: {len(channels)} channels")
    if len(channels) <= SUMMARY_CHANNEL_LIMIT:
        typer.echo(f"  {', '.join(channels)}")
    else:
        shown = ", ".join(channels[:SUMMARY_CHANNEL_LIMIT])
        typer.echo(f"  {shown}, ... ({len(channels) - SUMMARY_CHANNEL_LIMIT} more)")


@report_errors
def delete_rule(
    ctx: typer.Context,
    rule_id: int | None = typer.Argument(None, help="Rule ID to delete"),
    id_option: int | None = typer.Option(None, "--id", help="Rule ID to delete"),
):
    """Delete an automatic recording rule."""
    if rule_id is not None and id_option is not None and rule_id != id_option:
        raise InvalidInputError(f"conflicting rule IDs: argument {rule_id} and --id {id_option}")

    target = rule_id if rule_id is not None else id_option
    if target is None:
        raise InvalidInputError("rule ID is required (pass it as an argument or with --id)")
    if target <= 0:
        raise InvalidRuleIdError(target)

    with build_client(_settings(ctx)) as client:
        client.delete_rule(target)

    typer.echo(f"Automatic recording rule (ID: {target}) deleted successfully")


@report_errors
def list_channels(
    ctx: typer.Context,
    tv: bool = typer.Option(False, "--tv", help="Show only TV channels (service_type=1)"),
    radio: bool = typer.Option(False, "--radio", help="Show only radio channels (service_type=2)"),
    data: bool = typer.Option(False, "--data", help="Show only data channels (service_type=192)"),
    network: str | None = typer.Option(None, "--network", help="Filter by network name (substring match, case-insensitive)"),
    name: str | None = typer.Option(None, "--name", help="Filter by channel name (substring match, case-insensitive)"),
    output_format: str = typer.Option("table", "--format", help=FORMAT_HELP),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
):
    """List available channels."""
    validate_format(output_format)
    criteria = ChannelFilter(tv_only=tv, radio_only=radio, data_only=data, network=network, name=name)

    with build_client(_settings(ctx)) as client:
        envelope = client.list_channels()

    channels = apply_filter(envelope.items, criteria)
    _emit(
        "channels", channels, output_format, output,
        "No channels match the specified filters.",
        criteria.has_filters(),
    )


@report_errors
def list_recordings(
    ctx: typer.Context,
    title: str | None = typer.Option(None, "--title", help="Filter by title (substring match, case-insensitive)"),
    station: str | None = typer.Option(None, "--station", help="Filter by station name (substring match, case-insensitive)"),
    channel: str | None = typer.Option(None, "--channel", help="Filter by channel ID (exact match, format: ONID-TSID-SID)"),
    protected: bool = typer.Option(False, "--protected", help="Show only protected recordings"),
    output_format: str = typer.Option("table", "--format", help=FORMAT_HELP),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
):
    """List recorded programs."""
    validate_format(output_format)
    criteria = RecordingFilter(
        title=title,
        station=station,
        channel=_parse_channel(channel),
        protected_only=protected,
    )

    with build_client(_settings(ctx)) as client:
        envelope = client.list_recordings()

    recordings = apply_filter(envelope.items, criteria)
    _emit(
        "recordings", recordings, output_format, output,
        "No recordings match the specified filters.",
        criteria.has_filters(),
    )


@report_errors
def list_reservations(
    ctx: typer.Context,
    title: str | None = typer.Option(None, "--title", help="Filter by title (substring match, case-insensitive)"),
    station: str | None = typer.Option(None, "--station", help="Filter by station name (substring match, case-insensitive)"),
    channel: str | None = typer.Option(None, "--channel", help="Filter by channel ID (exact match, format: ONID-TSID-SID)"),
    output_format: str = typer.Option("table", "--format", help=FORMAT_HELP),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
):
    """List pending reservations."""
    validate_format(output_format)
    criteria = ReservationFilter(title=title, station=station, channel=_parse_channel(channel))

    with build_client(_settings(ctx)) as client:
        envelope = client.list_reservations()

    reservations = apply_filter(envelope.items, criteria)
    _emit(
        "reservations", reservations, output_format, output,
        "No reservations match the specified filters.",
        criteria.has_filters(),
    )


@report_errors
def list_program_guide(
    ctx: typer.Context,
    channel: str | None = typer.Option(None, "--channel", help="Channel ID in ONID-TSID-SID format (e.g., 32736-32736-1024)"),
    all_channels: bool = typer.Option(False, "--all-channels", help="Retrieve EPG for every channel in the channel list file"),
    channel_list_file: str | None = typer.Option(None, "--channel-list-file", help="Channel list used with --all-channels (default: EMWUI_CHANNEL_LIST_FILE)"),
    title: str | None = typer.Option(None, "--title", help="Filter by program title (substring match, case-insensitive)"),
    genre: str | None = typer.Option(None, "--genre", help="Filter by genre (substring match, case-insensitive)"),
    output_format: str = typer.Option("table", "--format", help=FORMAT_HELP),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
):
    """List program guide (EPG) events."""
    validate_format(output_format)
    if all_channels and channel:
        raise InvalidInputError("cannot use both --channel and --all-channels")
    if not all_channels and not channel:
        raise InvalidInputError("must specify either --channel or --all-channels")

    settings = _settings(ctx)
    criteria = ProgramFilter(title=title, genre=genre)

    if all_channels:
        channels = read_channel_list(channel_list_file or settings.channel_list_file)
        typer.echo(f"Retrieving EPG for {len(channels)} channels...", err=True)

        with build_client(settings) as client:
            result = fetch_program_guides(client, channels, on_progress=_echo_progress)

        for failure in result.failures:
            typer.echo(f"  Warning: Failed to retrieve EPG for {failure.channel}: {failure.error.message}", err=True)
        typer.echo(f"Retrieved {len(result.events)} programs from {len(channels)} channels", err=True)
        events = result.events
    else:
        wanted = ChannelRef.parse(channel)
        with build_client(settings) as client:
            events = client.list_program_guide(wanted).items

    events = apply_filter(events, criteria)
    _emit(
        "programs", events, output_format, output,
        "No programs match the specified filters.",
        criteria.has_filters(),
    )
