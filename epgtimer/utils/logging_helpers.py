"""
Structured logging helpers for consistent log formatting.

Provides utilities for clean request and batch progress logging.
"""
import logging


def log_request(logger: logging.Logger, method: str, url: str) -> None:
    """
    Log an outgoing EMWUI request.

    Args:
        logger: Logger instance
        method: HTTP method
        url: Full request URL
    """
    logger.debug(f"{method} {url}")


def log_response(logger: logging.Logger, status_code: int, size: int) -> None:
    """Log an EMWUI response status and body size."""
    logger.debug(f"  -> HTTP {status_code}, {size} bytes")


def log_channel_processing(logger: logging.Logger, idx: int, total: int, channel: str) -> None:
    """
    Log channel processing header.

    Args:
        logger: Logger instance
        idx: Current channel index (1-based)
        total: Total number of channels
        channel: Channel being processed (ONID-TSID-SID)
    """
    logger.info(f"Processing channel {idx}/{total}: {channel}")


def log_guide_summary(
    logger: logging.Logger,
    channels_count: int,
    failed_count: int,
    events_count: int
) -> None:
    """
    Log program guide retrieval summary.

    Args:
        logger: Logger instance
        channels_count: Number of channels requested
        failed_count: Number of channels that failed
        events_count: Number of events retrieved
    """
    logger.info(
        f"Program guide summary - Channels: {channels_count}, Failed: {failed_count}, Programs: {events_count}"
    )
