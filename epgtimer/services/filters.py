"""
Client-side filters

Each filter record holds the user's criteria for one entity kind. Criteria are
AND-combined and an empty criterion always passes, so conflicting flags simply
produce no matches.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from epgtimer.schemas import (
    AutoAddRule,
    ChannelInfo,
    ChannelRef,
    ProgramEvent,
    RecordingEntry,
    ReservationEntry,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


class Filter(Protocol[T]):
    def matches(self, item: T) -> bool: ...

    def has_filters(self) -> bool: ...


def contains_ci(text: str, needle: str | None) -> bool:
    """Case-insensitive substring test; an empty needle always passes"""
    if not needle:
        return True
    return needle.casefold() in (text or "").casefold()


def same_channel(channel: ChannelRef, wanted: ChannelRef | None) -> bool:
    """Exact channel identity; no wanted channel always passes"""
    return wanted is None or channel == wanted


def apply_filter(items: Iterable[T], criteria: Filter[T]) -> list[T]:
    """Items matching every active criterion, in input order"""
    items = list(items)
    if not criteria.has_filters():
        return items

    filtered = [item for item in items if criteria.matches(item)]
    logger.debug(f"Filter kept {len(filtered)} of {len(items)} items")
    return filtered


@dataclass(frozen=True, slots=True)
class RuleFilter:
    """Criteria for automatic recording rules"""
    and_key: str | None = None
    channel: ChannelRef | None = None
    enabled_only: bool = False
    disabled_only: bool = False
    regex_only: bool = False

    def matches(self, rule: AutoAddRule) -> bool:
        if self.enabled_only and not rule.is_enabled:
            return False
        if self.disabled_only and rule.is_enabled:
            return False
        if self.regex_only and not rule.is_regex:
            return False
        if not contains_ci(rule.search.and_key, self.and_key):
            return False
        if self.channel is not None and self.channel not in rule.search.service_list:
            return False
        return True

    def has_filters(self) -> bool:
        return bool(
            self.and_key or self.channel is not None
            or self.enabled_only or self.disabled_only or self.regex_only
        )


@dataclass(frozen=True, slots=True)
class ChannelFilter:
    """Criteria for services"""
    tv_only: bool = False
    radio_only: bool = False
    data_only: bool = False
    network: str | None = None
    name: str | None = None

    def matches(self, channel: ChannelInfo) -> bool:
        if self.tv_only and not channel.is_tv:
            return False
        if self.radio_only and not channel.is_radio:
            return False
        if self.data_only and not channel.is_data:
            return False
        return contains_ci(channel.network_name, self.network) and contains_ci(channel.service_name, self.name)

    def has_filters(self) -> bool:
        return bool(self.tv_only or self.radio_only or self.data_only or self.network or self.name)


@dataclass(frozen=True, slots=True)
class ProgramFilter:
    """Criteria for program guide events"""
    title: str | None = None
    genre: str | None = None

    def matches(self, event: ProgramEvent) -> bool:
        return contains_ci(event.event_name, self.title) and contains_ci(event.genre, self.genre)

    def has_filters(self) -> bool:
        return bool(self.title or self.genre)


@dataclass(frozen=True, slots=True)
class RecordingFilter:
    """Criteria for recorded programs"""
    title: str | None = None
    station: str | None = None
    channel: ChannelRef | None = None
    protected_only: bool = False

    def matches(self, recording: RecordingEntry) -> bool:
        if self.protected_only and not recording.is_protected:
            return False
        return (
            contains_ci(recording.title, self.title)
            and contains_ci(recording.station_name, self.station)
            and same_channel(recording.channel, self.channel)
        )

    def has_filters(self) -> bool:
        return bool(self.title or self.station or self.channel is not None or self.protected_only)


@dataclass(frozen=True, slots=True)
class ReservationFilter:
    """Criteria for reservations"""
    title: str | None = None
    station: str | None = None
    channel: ChannelRef | None = None

    def matches(self, reservation: ReservationEntry) -> bool:
        return (
            contains_ci(reservation.title, self.title)
            and contains_ci(reservation.station_name, self.station)
            and same_channel(reservation.channel, self.channel)
        )

    def has_filters(self) -> bool:
        return bool(self.title or self.station or self.channel is not None)


__all__ = [
    "contains_ci",
    "same_channel",
    "apply_filter",
    "RuleFilter",
    "ChannelFilter",
    "ProgramFilter",
    "RecordingFilter",
    "ReservationFilter",
]
