"""
Typed records decoded from EMWUI XML responses.

All entities are frozen pydantic models: they are built once by the XML parser
service and never mutated afterwards.
"""
from datetime import datetime
from typing import Generic, TypeVar
import re

from pydantic import BaseModel, ConfigDict, Field

from epgtimer.errors import ChannelFormatError
from epgtimer.utils.timeformat import end_datetime, parse_backend_datetime


_CHANNEL_PART = re.compile(r"[0-9]+")

SERVICE_TYPE_NAMES = {1: "TV", 2: "Radio", 192: "Data"}


class FrozenModel(BaseModel):
    """Base for immutable value records"""
    model_config = ConfigDict(frozen=True)


class ChannelRef(FrozenModel):
    """Broadcast service identity (ONID, TSID, SID)"""
    onid: int = Field(..., ge=0, description="Original Network ID")
    tsid: int = Field(..., ge=0, description="Transport Stream ID")
    sid: int = Field(..., ge=0, description="Service ID")

    def __str__(self) -> str:
        return f"{self.onid}-{self.tsid}-{self.sid}"

    @classmethod
    def parse(cls, value: str, *, index: int | None = None) -> "ChannelRef":
        """
        Parse a channel in "ONID-TSID-SID" format

        Example: "32736-32736-1024" -> ChannelRef(onid=32736, tsid=32736, sid=1024)

        Raises:
            ChannelFormatError: If the value is not three dash-separated integers
        """
        parts = value.split("-")
        if len(parts) != 3:
            raise ChannelFormatError(value, index=index)

        for label, part in zip(("ONID", "TSID", "SID"), parts):
            if not _CHANNEL_PART.fullmatch(part):
                raise ChannelFormatError(value, index=index, reason=f"invalid {label} '{part}'")

        onid, tsid, sid = (int(part) for part in parts)
        return cls(onid=onid, tsid=tsid, sid=sid)


class ChannelInfo(FrozenModel):
    """Single service from EnumService"""
    channel: ChannelRef
    service_type: int = 0
    partial_reception_flag: int = 0
    service_provider_name: str = ""
    service_name: str = ""
    network_name: str = ""
    ts_name: str = ""
    remote_control_key_id: int = 0

    @property
    def channel_id(self) -> str:
        return str(self.channel)

    @property
    def is_tv(self) -> bool:
        return self.service_type == 1

    @property
    def is_radio(self) -> bool:
        return self.service_type == 2

    @property
    def is_data(self) -> bool:
        return self.service_type == 192

    @property
    def service_type_name(self) -> str:
        """Human-readable service type (unknown types render as 'Type<n>')"""
        return SERVICE_TYPE_NAMES.get(self.service_type, f"Type{self.service_type}")


class ContentInfo(FrozenModel):
    """Genre entry attached to a program event"""
    nibble1: int = 0
    nibble2: int = 0
    component_type_name: str = ""


class _Scheduled(FrozenModel):
    """Shared start/duration accessors"""
    start_date: str = Field("", description="Local start date, YYYY/MM/DD")
    start_time: str = Field("", description="Local start time, HH:MM:SS")
    duration_seconds: int = 0

    @property
    def duration_minutes(self) -> int:
        # Whole minutes, remaining seconds truncated
        return self.duration_seconds // 60

    @property
    def start_datetime(self) -> datetime:
        return parse_backend_datetime(self.start_date, self.start_time)

    @property
    def end_datetime(self) -> datetime:
        return end_datetime(self.start_date, self.start_time, self.duration_seconds)


class ProgramEvent(_Scheduled):
    """Single program from EnumEventInfo"""
    channel: ChannelRef
    event_id: int = 0
    service_name: str = ""
    start_day_of_week: int = 0
    event_name: str = ""
    event_text: str = ""
    event_ext_text: str = ""
    free_ca_flag: int = 0
    genres: list[ContentInfo] = Field(default_factory=list)

    @property
    def channel_id(self) -> str:
        return str(self.channel)

    @property
    def is_free_ca(self) -> bool:
        """True if the program is not scrambled"""
        return self.free_ca_flag == 0

    @property
    def genre(self) -> str:
        """First named genre, or an empty string"""
        for content in self.genres:
            if content.component_type_name:
                return content.component_type_name
        return ""


class RecordingSettings(FrozenModel):
    """Recording behaviour of a rule or reservation (<recsetting>)"""
    rec_mode: int = 0
    priority: int = 0
    tuijyuu_flag: int = 0
    service_mode: int = 0
    pittari_flag: int = 0
    bat_file_path: str = ""
    rec_folder_list: str = ""
    suspend_mode: int = 0
    def_service_mode: int = 0
    reboot_flag: int = 0
    use_margine_flag: int = 0
    start_margine: int = 0
    end_margine: int = 0
    continue_rec_flag: int = 0
    partial_rec_flag: int = 0
    tuner_id: int = 0
    partial_rec_folder: str = ""

    @property
    def is_auto_follow(self) -> bool:
        return self.tuijyuu_flag == 1

    @property
    def has_margins(self) -> bool:
        return self.use_margine_flag == 1

    @property
    def uses_custom_tuner(self) -> bool:
        return self.tuner_id > 0


class RecordingEntry(_Scheduled):
    """Single recorded program from EnumRecInfo"""
    id: int
    title: str = ""
    station_name: str = ""
    channel: ChannelRef
    event_id: int = 0
    comment: str = ""
    rec_file_path: str = ""
    protect_flag: int = 0

    @property
    def channel_id(self) -> str:
        return str(self.channel)

    @property
    def is_protected(self) -> bool:
        return self.protect_flag == 1


class ReservationEntry(_Scheduled):
    """Single reservation from EnumReserveInfo"""
    id: int
    title: str = ""
    station_name: str = ""
    channel: ChannelRef
    event_id: int = 0
    comment: str = ""
    recording_settings: RecordingSettings = Field(default_factory=RecordingSettings)

    @property
    def channel_id(self) -> str:
        return str(self.channel)


class SearchSettings(FrozenModel):
    """Keyword search criteria of a rule (<searchsetting>)"""
    disable_flag: int = 0
    case_flag: int = 0
    and_key: str = ""
    not_key: str = ""
    reg_exp_flag: int = 0
    title_only_flag: int = 0
    aimai_flag: int = Field(0, description="Fuzzy matching")
    not_contet_flag: int = 0
    not_date_flag: int = 0
    free_ca_flag: int = 0
    chk_rec_end: int = 0
    chk_rec_day: int = 0
    chk_rec_no_service: int = 0
    chk_duration_min: int = 0
    chk_duration_max: int = 0
    service_list: list[ChannelRef] = Field(default_factory=list)

    @property
    def is_enabled(self) -> bool:
        return self.disable_flag == 0

    @property
    def is_regex(self) -> bool:
        return self.reg_exp_flag == 1

    @property
    def has_duration_filter(self) -> bool:
        return self.chk_duration_min > 0 or self.chk_duration_max > 0

    @property
    def channel_count(self) -> int:
        return len(self.service_list)


class AutoAddRule(FrozenModel):
    """Automatic recording rule from EnumAutoAdd"""
    id: int
    search: SearchSettings = Field(default_factory=SearchSettings)
    recording: RecordingSettings = Field(default_factory=RecordingSettings)

    @property
    def is_enabled(self) -> bool:
        return self.search.is_enabled

    @property
    def is_regex(self) -> bool:
        return self.search.is_regex


ItemT = TypeVar("ItemT")


class Envelope(FrozenModel, Generic[ItemT]):
    """<entry><total/><index/><count/><items>...</items></entry> list response"""
    total: int = 0
    index: int = 0
    count: int = 0
    items: list[ItemT] = Field(default_factory=list)


class AutoAddRuleResponse(FrozenModel):
    """
    SetAutoAdd result

    Success: <entry><success>MESSAGE</success></entry>
    Error:   <entry><err>MESSAGE</err></entry>
    """
    success: str | None = None
    error: str | None = None

    @property
    def is_success(self) -> bool:
        return bool(self.success) and not self.error

    @property
    def error_message(self) -> str:
        return self.error or "unknown error"


class AutoAddRuleRequest(FrozenModel):
    """
    Parameters for creating an automatic recording rule

    Only and_key, not_key and service_list come from the user. The remaining
    fields mirror the values the EMWUI form submits and are not exposed on the
    command line. ctok is filled in at submission time with with_token().
    """
    and_key: str
    not_key: str = ""
    service_list: list[str] = Field(default_factory=list)

    addchg: int = 1
    title_only_flag: int = 1
    day_list: str = "on"
    start_time: str = "00:00"
    end_time: str = "01:00"
    date_list: str = ""
    free_ca_flag: int = 0
    chk_duration_min: int = 0
    chk_duration_max: int = 0
    chk_rec_day: int = 6
    preset_id: int = 0
    rec_mode: int = 1
    tuijyuu_flag: int = 1
    priority: int = 2
    use_def_margin_flag: int = 1
    service_mode: int = 1
    tuner_id: int = 0
    suspend_mode: int = 0
    bat_file_path: str = ""
    bat_file_tag: str = ""

    ctok: str = ""

    def with_token(self, ctok: str) -> "AutoAddRuleRequest":
        return self.model_copy(update={"ctok": ctok})


__all__ = [
    "ChannelRef",
    "ChannelInfo",
    "ContentInfo",
    "ProgramEvent",
    "RecordingSettings",
    "RecordingEntry",
    "ReservationEntry",
    "SearchSettings",
    "AutoAddRule",
    "Envelope",
    "AutoAddRuleResponse",
    "AutoAddRuleRequest",
]
