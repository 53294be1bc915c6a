"""
Output renderers

Every entity kind can be rendered as a fixed-width table, JSON, CSV or TSV.
Renderers return the complete text; writing it to stdout or a file is the
caller's job.
"""
import csv
import io
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from epgtimer.errors import InvalidInputError
from epgtimer.schemas import (
    AutoAddRule,
    ChannelInfo,
    ProgramEvent,
    RecordingEntry,
    ReservationEntry,
)
from epgtimer.utils.timeformat import short_date, short_time


logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("table", "json", "csv", "tsv")

SEPARATOR = "-" * 100


def truncate(text: str, max_len: int) -> str:
    """Shorten text to max_len characters, marking the cut with '...'"""
    if len(text) <= max_len:
        return text
    if max_len <= 3:
        return text[:max_len]
    return text[:max_len - 3] + "..."


@dataclass(frozen=True, slots=True)
class Renderer:
    """How one entity kind is laid out in each output format"""
    noun: str
    table: Callable[[Sequence[Any]], str]
    record: Callable[[Any], dict]
    columns: tuple[str, ...]
    row: Callable[[Any], list]


# Rules

def _rules_table(rules: Sequence[AutoAddRule]) -> str:
    if not rules:
        return "No automatic recording rules found.\n"

    line = "{:<4}  {:<8}  {:<30}  {:<30}  {}\n"
    lines = [line.format("ID", "Enabled", "Keywords", "Exclusions", "Channels")]
    for rule in rules:
        lines.append(line.format(
            rule.id,
            "Yes" if rule.is_enabled else "No",
            truncate(rule.search.and_key, 30),
            truncate(rule.search.not_key, 30),
            f"{rule.search.channel_count} channels",
        ))
    return "".join(lines)


def _rule_record(rule: AutoAddRule) -> dict:
    return rule.model_dump(mode="json")


def _rule_row(rule: AutoAddRule) -> list:
    return [
        rule.id,
        str(rule.is_enabled).lower(),
        rule.search.and_key,
        rule.search.not_key,
        str(rule.is_regex).lower(),
        ";".join(str(channel) for channel in rule.search.service_list),
        rule.search.channel_count,
        rule.recording.priority,
        rule.recording.rec_mode,
    ]


# Channels

def _channels_table(channels: Sequence[ChannelInfo]) -> str:
    if not channels:
        return "No channels found.\n"

    line = "{:<20} {:<12} {:<6} {:<40} {:<20}\n"
    lines = [line.format("Channel ID", "Type", "Key", "Channel Name", "Network"), SEPARATOR + "\n"]
    for channel in channels:
        key_id = str(channel.remote_control_key_id) if channel.remote_control_key_id > 0 else "-"
        lines.append(line.format(
            channel.channel_id,
            channel.service_type_name,
            key_id,
            truncate(channel.service_name, 40),
            truncate(channel.network_name, 20),
        ))
    lines.append(f"\nTotal: {len(channels)} channels\n")
    return "".join(lines)


def _channel_record(channel: ChannelInfo) -> dict:
    return {
        "channel_id": channel.channel_id,
        "onid": channel.channel.onid,
        "tsid": channel.channel.tsid,
        "sid": channel.channel.sid,
        "service_type": channel.service_type,
        "service_type_name": channel.service_type_name,
        "service_name": channel.service_name,
        "service_provider_name": channel.service_provider_name,
        "network_name": channel.network_name,
        "ts_name": channel.ts_name,
        "remote_control_key_id": channel.remote_control_key_id,
    }


def _channel_row(channel: ChannelInfo) -> list:
    return list(_channel_record(channel).values())


# Program guide

def _events_table(events: Sequence[ProgramEvent]) -> str:
    if not events:
        return "No events found.\n"

    line = "{:<12} {:<6} {:<5} {:<50} {:<20}\n"
    lines = [line.format("Date", "Time", "Mins", "Title", "Genre"), SEPARATOR + "\n"]
    for event in events:
        lines.append(line.format(
            short_date(event.start_date),
            short_time(event.start_time),
            event.duration_minutes,
            truncate(event.event_name, 50),
            truncate(event.genre, 20),
        ))
    lines.append(f"\nTotal: {len(events)} programs\n")
    return "".join(lines)


def _event_record(event: ProgramEvent) -> dict:
    return {
        "channel_id": event.channel_id,
        "onid": event.channel.onid,
        "tsid": event.channel.tsid,
        "sid": event.channel.sid,
        "event_id": event.event_id,
        "service_name": event.service_name,
        "start_date": event.start_date,
        "start_time": event.start_time,
        "duration_minutes": event.duration_minutes,
        "event_name": event.event_name,
        "event_text": event.event_text,
        "genre": event.genre,
    }


def _event_row(event: ProgramEvent) -> list:
    return list(_event_record(event).values())


# Recordings and reservations

def _scheduled_table(entries, empty_message: str, noun: str) -> str:
    if not entries:
        return empty_message

    line = "{:<6} {:<12} {:<6} {:<50} {:<20}\n"
    lines = [line.format("ID", "Date", "Time", "Title", "Station"), SEPARATOR + "\n"]
    for entry in entries:
        lines.append(line.format(
            entry.id,
            short_date(entry.start_date),
            short_time(entry.start_time),
            truncate(entry.title, 50),
            truncate(entry.station_name, 20),
        ))
    lines.append(f"\nTotal: {len(entries)} {noun}\n")
    return "".join(lines)


def _scheduled_record(entry: RecordingEntry | ReservationEntry) -> dict:
    return {
        "id": entry.id,
        "title": entry.title,
        "start_date": entry.start_date,
        "start_time": entry.start_time,
        "duration_second": entry.duration_seconds,
        "duration_minutes": entry.duration_minutes,
        "station_name": entry.station_name,
        "channel_id": entry.channel_id,
        "onid": entry.channel.onid,
        "tsid": entry.channel.tsid,
        "sid": entry.channel.sid,
        "event_id": entry.event_id,
        "comment": entry.comment,
    }


def _recording_record(recording: RecordingEntry) -> dict:
    record = _scheduled_record(recording)
    record["rec_file_path"] = recording.rec_file_path
    record["protected"] = recording.is_protected
    return record


def _recording_row(recording: RecordingEntry) -> list:
    record = _recording_record(recording)
    del record["duration_second"]
    record["protected"] = str(recording.is_protected).lower()
    return list(record.values())


def _reservation_row(reservation: ReservationEntry) -> list:
    record = _scheduled_record(reservation)
    del record["duration_second"]
    return list(record.values())


_SCHEDULED_COLUMNS = (
    "ID", "Title", "StartDate", "StartTime", "DurationMinutes", "StationName",
    "ChannelID", "ONID", "TSID", "SID", "EventID", "Comment",
)

RENDERERS: dict[str, Renderer] = {
    "rules": Renderer(
        noun="rules",
        table=_rules_table,
        record=_rule_record,
        columns=("ID", "Enabled", "AndKey", "NotKey", "RegExp", "Channels", "ChannelCount", "Priority", "RecMode"),
        row=_rule_row,
    ),
    "channels": Renderer(
        noun="channels",
        table=_channels_table,
        record=_channel_record,
        columns=(
            "ChannelID", "ONID", "TSID", "SID", "ServiceType", "ServiceTypeName", "ServiceName",
            "ServiceProviderName", "NetworkName", "TSName", "RemoteControlKeyID",
        ),
        row=_channel_row,
    ),
    "programs": Renderer(
        noun="programs",
        table=_events_table,
        record=_event_record,
        columns=(
            "ChannelID", "ONID", "TSID", "SID", "EventID", "ServiceName", "StartDate",
            "StartTime", "DurationMinutes", "EventName", "EventText", "Genre",
        ),
        row=_event_row,
    ),
    "recordings": Renderer(
        noun="recordings",
        table=lambda entries: _scheduled_table(entries, "No recordings found.\n", "recordings"),
        record=_recording_record,
        columns=_SCHEDULED_COLUMNS + ("RecFilePath", "Protected"),
        row=_recording_row,
    ),
    "reservations": Renderer(
        noun="reservations",
        table=lambda entries: _scheduled_table(entries, "No reservations found.\n", "reservations"),
        record=_scheduled_record,
        columns=_SCHEDULED_COLUMNS,
        row=_reservation_row,
    ),
}


def validate_format(output_format: str) -> str:
    """Normalized output format name, or InvalidInputError if unsupported"""
    fmt = output_format.lower()
    if fmt not in OUTPUT_FORMATS:
        raise InvalidInputError(
            f"unsupported format '{output_format}'. Supported formats: {', '.join(OUTPUT_FORMATS)}"
        )
    return fmt


def _delimited(renderer: Renderer, items: Sequence[Any], delimiter: str) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n")
    writer.writerow(renderer.columns)
    for item in items:
        writer.writerow(renderer.row(item))
    return buffer.getvalue()


def render(kind: str, items: Sequence[Any], output_format: str = "table") -> str:
    """
    Render a list of entities

    Args:
        kind: One of the RENDERERS keys (rules, channels, programs, recordings, reservations)
        items: Entities to render, in display order
        output_format: table, json, csv or tsv

    Returns:
        Rendered text ending with a newline

    Raises:
        InvalidInputError: If the output format is not supported
    """
    renderer = RENDERERS[kind]
    fmt = validate_format(output_format)
    logger.debug(f"Rendering {len(items)} {renderer.noun} as {fmt}")

    if fmt == "table":
        return renderer.table(items)
    if fmt == "json":
        payload = [renderer.record(item) for item in items]
        return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"
    if fmt == "csv":
        return _delimited(renderer, items, ",")
    return _delimited(renderer, items, "\t")
