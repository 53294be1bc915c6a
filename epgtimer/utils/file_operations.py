"""
File operation utilities

This module handles reading channel list files and writing exported output.
"""
import logging
from pathlib import Path

from epgtimer.errors import ChannelFormatError, InvalidInputError, OutputWriteError
from epgtimer.schemas import ChannelRef


logger = logging.getLogger(__name__)


def read_channel_list(file_path: Path | str) -> list[ChannelRef]:
    """
    Read channels from a text file

    One channel per line in ONID-TSID-SID format. Blank lines and lines
    starting with '#' are skipped.

    Args:
        file_path: Path to the channel list

    Returns:
        Channels in file order

    Raises:
        InvalidInputError: If the file cannot be read, a line is malformed,
            or the file holds no channels
    """
    path = Path(file_path)

    try:
        content = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidInputError(f"failed to read channel list '{path}': {e}") from e

    channels: list[ChannelRef] = []
    for line_num, raw_line in enumerate(content.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        try:
            channels.append(ChannelRef.parse(line))
        except ChannelFormatError as e:
            raise InvalidInputError(f"invalid format at line {line_num} of '{path}': {e}") from e

    if not channels:
        raise InvalidInputError(f"channel list '{path}' contains no valid channels")

    logger.debug(f"Read {len(channels)} channels from {path}")
    return channels


def write_output(file_path: Path | str, content: str) -> Path:
    """
    Write rendered output to a file in one piece

    Args:
        file_path: Destination path
        content: Rendered text

    Returns:
        Path written

    Raises:
        OutputWriteError: If the file cannot be written
    """
    path = Path(file_path)

    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(str(path), str(e)) from e

    logger.debug(f"Wrote {len(content)} characters to {path}")
    return path
