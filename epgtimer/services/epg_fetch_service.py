"""
Program Guide Fetching Service

Retrieves program guide events for a list of channels, one request at a time.
A channel that fails is recorded and skipped; the remaining channels are still
fetched.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Literal, Sequence

from epgtimer.errors import EMWUIError
from epgtimer.schemas import ChannelRef, ProgramEvent
from epgtimer.services.emwui_client import EMWUIClient
from epgtimer.utils.logging_helpers import log_channel_processing, log_guide_summary


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, ChannelRef], None]


@dataclass(slots=True)
class ChannelSummary:
    index: int
    channel: ChannelRef
    started_at: datetime
    completed_at: datetime
    status: Literal["success", "failed"]
    events_retrieved: int = 0
    error: EMWUIError | None = None

    @property
    def duration_seconds(self) -> float:
        return max(0.0, (self.completed_at - self.started_at).total_seconds())


@dataclass(slots=True)
class ProgramGuideResult:
    """Accumulated outcome of a multi-channel program guide fetch"""
    events: list[ProgramEvent] = field(default_factory=list)
    summaries: list[ChannelSummary] = field(default_factory=list)

    @property
    def failures(self) -> list[ChannelSummary]:
        return [summary for summary in self.summaries if summary.status == "failed"]


def fetch_program_guides(
    client: EMWUIClient,
    channels: Sequence[ChannelRef],
    *,
    on_progress: ProgressCallback | None = None
) -> ProgramGuideResult:
    """
    Fetch program guide events for each channel in order

    Args:
        client: Open EMWUI client
        channels: Channels to query
        on_progress: Called with (1-based index, total, channel) before each request

    Returns:
        ProgramGuideResult with all events retrieved and one summary per channel
    """
    result = ProgramGuideResult()
    total = len(channels)

    for index, channel in enumerate(channels, start=1):
        log_channel_processing(logger, index, total, str(channel))
        if on_progress is not None:
            on_progress(index, total, channel)

        started_at = datetime.now(timezone.utc)
        try:
            envelope = client.list_program_guide(channel)
        except EMWUIError as exc:
            logger.warning(f"Failed to retrieve EPG for {channel}: {exc.message}")
            summary = ChannelSummary(
                index=index,
                channel=channel,
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
                status="failed",
                error=exc,
            )
        else:
            result.events.extend(envelope.items)
            summary = ChannelSummary(
                index=index,
                channel=channel,
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
                status="success",
                events_retrieved=len(envelope.items),
            )

        logger.debug(
            f"  [{summary.index}/{total}] {summary.channel}: {summary.status}, "
            f"{summary.events_retrieved} events in {summary.duration_seconds:.2f}s"
        )
        result.summaries.append(summary)

    log_guide_summary(logger, total, len(result.failures), len(result.events))
    return result
