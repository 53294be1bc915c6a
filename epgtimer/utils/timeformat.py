"""
Date and Time utilities

EMWUI reports start times as separate local date ("2025/12/22") and time
("22:30:00") strings. This module centralizes parsing of that pair and the
short display forms used by the table renderers.
"""
from datetime import datetime, timedelta
import logging


logger = logging.getLogger(__name__)

BACKEND_DATETIME_FORMAT = "%Y/%m/%d %H:%M:%S"


class DateFormatError(ValueError):
    """Raised when date format is invalid"""
    pass


def parse_backend_datetime(start_date: str, start_time: str) -> datetime:
    """
    Combine EMWUI date and time strings into a naive local datetime

    Args:
        start_date: Date like '2025/12/22'
        start_time: Time like '22:30:00'

    Returns:
        Naive datetime in the backend's local time

    Raises:
        DateFormatError: If either part is malformed
    """
    try:
        return datetime.strptime(f"{start_date} {start_time}", BACKEND_DATETIME_FORMAT)
    except ValueError as e:
        raise DateFormatError(f"Invalid EMWUI datetime: '{start_date} {start_time}'") from e


def end_datetime(start_date: str, start_time: str, duration_seconds: int) -> datetime:
    """Start plus duration"""
    return parse_backend_datetime(start_date, start_time) + timedelta(seconds=duration_seconds)


def short_date(start_date: str) -> str:
    """'2025/12/22' -> '12/22'; other shapes are returned unchanged"""
    parts = start_date.split("/")
    if len(parts) != 3:
        return start_date
    return f"{parts[1]}/{parts[2]}"


def short_time(start_time: str) -> str:
    """'22:30:00' -> '22:30'; other shapes are returned unchanged"""
    parts = start_time.split(":")
    if len(parts) < 2:
        return start_time
    return f"{parts[0]}:{parts[1]}"
