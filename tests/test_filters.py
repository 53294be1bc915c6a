"""Tests for client-side filtering"""
import pytest

from epgtimer.schemas import ChannelRef
from epgtimer.services.filters import (
    ChannelFilter,
    ProgramFilter,
    RecordingFilter,
    ReservationFilter,
    RuleFilter,
    apply_filter,
    contains_ci,
)
from epgtimer.services.xml_parser_service import (
    parse_auto_add_rule,
    parse_channel_info,
    parse_envelope,
    parse_program_event,
    parse_recording_entry,
    parse_reservation_entry,
)
from tests.conftest import CHANNELS_XML, EVENTS_XML, RECORDINGS_XML, RESERVATIONS_XML, RULES_XML


@pytest.fixture
def rules():
    return parse_envelope(RULES_XML.encode("utf-8"), "autoaddinfo", parse_auto_add_rule).items


@pytest.fixture
def channels():
    return parse_envelope(CHANNELS_XML.encode("utf-8"), "serviceinfo", parse_channel_info).items


class TestRuleFilter:
    def test_enabled(self, rules):
        assert [rule.id for rule in apply_filter(rules, RuleFilter(enabled_only=True))] == [1, 2]

    def test_disabled(self, rules):
        assert [rule.id for rule in apply_filter(rules, RuleFilter(disabled_only=True))] == [3]

    def test_enabled_and_disabled_match_nothing(self, rules):
        assert apply_filter(rules, RuleFilter(enabled_only=True, disabled_only=True)) == []

    def test_regex(self, rules):
        assert [rule.id for rule in apply_filter(rules, RuleFilter(regex_only=True))] == [3]

    def test_keyword_is_case_insensitive(self, rules):
        assert [rule.id for rule in apply_filter(rules, RuleFilter(and_key="zero"))] == [1]

    def test_channel(self, rules):
        criteria = RuleFilter(channel=ChannelRef.parse("32737-32737-1032"))
        assert [rule.id for rule in apply_filter(rules, criteria)] == [2, 3]

    def test_criteria_are_combined(self, rules):
        criteria = RuleFilter(channel=ChannelRef.parse("32737-32737-1032"), enabled_only=True)
        assert [rule.id for rule in apply_filter(rules, criteria)] == [2]

    def test_no_criteria_keeps_everything(self, rules):
        assert not RuleFilter().has_filters()
        assert apply_filter(rules, RuleFilter()) == list(rules)


class TestChannelFilter:
    def test_service_types(self, channels):
        assert [c.service_name for c in apply_filter(channels, ChannelFilter(tv_only=True))] == ["NHK総合1・東京"]
        assert [c.service_name for c in apply_filter(channels, ChannelFilter(radio_only=True))] == ["NHK-FM"]
        assert [c.service_name for c in apply_filter(channels, ChannelFilter(data_only=True))] == ["BSデータ"]

    def test_network_substring(self, channels):
        assert len(apply_filter(channels, ChannelFilter(network="bs digital"))) == 1
        assert len(apply_filter(channels, ChannelFilter(network="地上"))) == 2

    def test_name_substring(self, channels):
        assert len(apply_filter(channels, ChannelFilter(name="nhk"))) == 2


def test_program_filter():
    events = parse_envelope(EVENTS_XML.encode("utf-8"), "eventinfo", parse_program_event).items

    assert [e.event_id for e in apply_filter(events, ProgramFilter(title="ニュース"))] == [101]
    assert [e.event_id for e in apply_filter(events, ProgramFilter(genre="教養"))] == [102]
    assert apply_filter(events, ProgramFilter(title="ニュース", genre="教養")) == []


def test_recording_filter():
    recordings = parse_envelope(RECORDINGS_XML.encode("utf-8"), "recinfo", parse_recording_entry).items

    assert [r.id for r in apply_filter(recordings, RecordingFilter(protected_only=True))] == [10]
    assert [r.id for r in apply_filter(recordings, RecordingFilter(station="eテレ"))] == [11]
    assert [r.id for r in apply_filter(recordings, RecordingFilter(channel=ChannelRef.parse("32736-32736-1024")))] == [10]
    assert [r.id for r in apply_filter(recordings, RecordingFilter(title="zero"))] == [11]


def test_reservation_filter():
    reservations = parse_envelope(RESERVATIONS_XML.encode("utf-8"), "reserveinfo", parse_reservation_entry).items

    assert [r.id for r in apply_filter(reservations, ReservationFilter(title="ブラタモリ"))] == [20]
    assert [r.id for r in apply_filter(reservations, ReservationFilter(channel=ChannelRef.parse("32737-32737-1032")))] == [21]
    assert apply_filter(reservations, ReservationFilter(station="BS")) == []


@pytest.mark.parametrize(
    "text,needle,expected",
    [("ABC", "b", True), ("ABC", "", True), ("ABC", None, True), ("", "a", False), ("ＮＨＫ", "ｎｈｋ", True)],
)
def test_contains_ci(text, needle, expected):
    assert contains_ci(text, needle) is expected
