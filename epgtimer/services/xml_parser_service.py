from typing import Callable, Optional, TypeVar
import logging
import re

from lxml import etree # type: ignore

from epgtimer.errors import ApplicationError, DecodeError, UnexpectedHTMLError
from epgtimer.schemas import (
    AutoAddRule,
    AutoAddRuleResponse,
    ChannelInfo,
    ChannelRef,
    ContentInfo,
    Envelope,
    ProgramEvent,
    RecordingEntry,
    RecordingSettings,
    ReservationEntry,
    SearchSettings,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENVELOPE_ROOT = "entry"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)

_UTF8_BOM = b"\xef\xbb\xbf"
_LEADING_COMMENTS = re.compile(rb"^(?:\s*<!--.*?-->)*", re.DOTALL)


class _ItemError(ValueError):
    """Raised by item parsers when a field cannot be converted"""
    pass


def looks_like_html(body: bytes) -> bool:
    """True if the body is an HTML page rather than an EMWUI XML document"""
    head = body.removeprefix(_UTF8_BOM)
    head = _LEADING_COMMENTS.sub(b"", head, count=1).lstrip()[:256].lower()
    return head.startswith((b"<!doctype html", b"<html"))


def parse_envelope(
    body: bytes,
    item_tag: str,
    parse_item: Callable[[etree._Element], T],
    *,
    url: str = "",
) -> Envelope[T]:
    """
    Decode a list response

    Args:
        body: Raw response body
        item_tag: Element name of each entry under <items>
        parse_item: Converts one item element into an entity
        url: Request URL, for error reporting

    Returns:
        Envelope with total/index/count and decoded items

    Raises:
        UnexpectedHTMLError: If the body is an HTML page
        DecodeError: If the body is not the expected <entry> document
        ApplicationError: If the backend answered with <err>
    """
    root = _load_root(body, url=url)

    backend_error = _get_text(root, "err")
    if backend_error:
        raise ApplicationError(backend_error)

    try:
        total = _get_int(root, "total")
        index = _get_int(root, "index")
        count = _get_int(root, "count")

        items: list[T] = []
        items_elem = root.find("items")
        if items_elem is not None:
            for item in items_elem.findall(item_tag):
                items.append(parse_item(item))
    except ValueError as e:
        raise DecodeError(str(e), _body_text(body)) from e

    logger.debug(f"  Decoded <{item_tag}> envelope: total={total} index={index} count={count} items={len(items)}")

    return Envelope(total=total, index=index, count=count, items=items)


def parse_set_auto_add_response(body: bytes, *, url: str = "") -> AutoAddRuleResponse:
    """Decode <entry><success>..</success></entry> or <entry><err>..</err></entry>"""
    root = _load_root(body, url=url)
    return AutoAddRuleResponse(
        success=_get_text(root, "success"),
        error=_get_text(root, "err"),
    )


def _load_root(body: bytes, *, url: str) -> etree._Element:
    if looks_like_html(body):
        raise UnexpectedHTMLError(_body_text(body), url=url)

    try:
        root = etree.fromstring(body, parser=_PARSER)
    except etree.XMLSyntaxError as e:
        logger.debug(f"  XML parsing error: {e}")
        raise DecodeError(str(e), _body_text(body)) from e

    if not isinstance(root.tag, str):
        raise DecodeError("document has no root element", _body_text(body))

    if etree.QName(root).localname.lower() == "html":
        raise UnexpectedHTMLError(_body_text(body), url=url)

    if root.tag != ENVELOPE_ROOT:
        raise DecodeError(
            f"expected <{ENVELOPE_ROOT}> root element, got <{root.tag}>",
            _body_text(body),
        )

    return root


def _body_text(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


def parse_channel_ref(element: etree._Element, onid: str = "ONID", tsid: str = "TSID", sid: str = "SID") -> ChannelRef:
    """Build a ChannelRef from three child elements"""
    return ChannelRef(
        onid=_get_int(element, onid),
        tsid=_get_int(element, tsid),
        sid=_get_int(element, sid),
    )


def parse_channel_info(element: etree._Element) -> ChannelInfo:
    """<serviceinfo> from EnumService"""
    return ChannelInfo(
        channel=parse_channel_ref(element),
        service_type=_get_int(element, "service_type"),
        partial_reception_flag=_get_int(element, "partialReceptionFlag"),
        service_provider_name=_get_text(element, "service_provider_name", default=""),
        service_name=_get_text(element, "service_name", default=""),
        network_name=_get_text(element, "network_name", default=""),
        ts_name=_get_text(element, "ts_name", default=""),
        remote_control_key_id=_get_int(element, "remote_control_key_id"),
    )


def parse_program_event(element: etree._Element) -> ProgramEvent:
    """<eventinfo> from EnumEventInfo"""
    genres = [
        ContentInfo(
            nibble1=_get_int(content, "nibble1"),
            nibble2=_get_int(content, "nibble2"),
            component_type_name=_get_text(content, "component_type_name", default=""),
        )
        for content in element.findall("contentInfo")
    ]

    return ProgramEvent(
        channel=parse_channel_ref(element),
        event_id=_get_int(element, "eventID"),
        service_name=_get_text(element, "service_name", default=""),
        start_date=_get_text(element, "startDate", default=""),
        start_time=_get_text(element, "startTime", default=""),
        start_day_of_week=_get_int(element, "startDayOfWeek"),
        duration_seconds=_get_int(element, "duration"),
        event_name=_get_text(element, "event_name", default=""),
        event_text=_get_text(element, "event_text", default=""),
        event_ext_text=_get_text(element, "event_ext_text", default=""),
        free_ca_flag=_get_int(element, "freeCAFlag"),
        genres=genres,
    )


def parse_recording_entry(element: etree._Element) -> RecordingEntry:
    """<recinfo> from EnumRecInfo"""
    return RecordingEntry(
        id=_get_int(element, "ID"),
        title=_get_text(element, "title", default=""),
        start_date=_get_text(element, "startDate", default=""),
        start_time=_get_text(element, "startTime", default=""),
        duration_seconds=_get_int(element, "durationSecond"),
        station_name=_get_text(element, "stationName", default=""),
        channel=parse_channel_ref(element),
        event_id=_get_int(element, "eventID"),
        comment=_get_text(element, "comment", default=""),
        rec_file_path=_get_text(element, "recFilePath", default=""),
        protect_flag=_get_int(element, "protectFlag"),
    )


def parse_reservation_entry(element: etree._Element) -> ReservationEntry:
    """<reserveinfo> from EnumReserveInfo"""
    recsetting = element.find("recsetting")
    return ReservationEntry(
        id=_get_int(element, "ID"),
        title=_get_text(element, "title", default=""),
        start_date=_get_text(element, "startDate", default=""),
        start_time=_get_text(element, "startTime", default=""),
        duration_seconds=_get_int(element, "durationSecond"),
        station_name=_get_text(element, "stationName", default=""),
        channel=parse_channel_ref(element),
        event_id=_get_int(element, "eventID"),
        comment=_get_text(element, "comment", default=""),
        recording_settings=_parse_recording_settings(recsetting),
    )


def parse_auto_add_rule(element: etree._Element) -> AutoAddRule:
    """<autoaddinfo> from EnumAutoAdd"""
    return AutoAddRule(
        id=_get_int(element, "ID"),
        search=_parse_search_settings(element.find("searchsetting")),
        recording=_parse_recording_settings(element.find("recsetting")),
    )


def _parse_search_settings(element: Optional[etree._Element]) -> SearchSettings:
    if element is None:
        return SearchSettings()

    service_list = [
        parse_channel_ref(service, onid="onid", tsid="tsid", sid="sid")
        for service in element.findall("serviceList")
    ]

    return SearchSettings(
        disable_flag=_get_int(element, "disableFlag"),
        case_flag=_get_int(element, "caseFlag"),
        and_key=_get_text(element, "andKey", default=""),
        not_key=_get_text(element, "notKey", default=""),
        reg_exp_flag=_get_int(element, "regExpFlag"),
        title_only_flag=_get_int(element, "titleOnlyFlag"),
        aimai_flag=_get_int(element, "aimaiFlag"),
        not_contet_flag=_get_int(element, "notContetFlag"),
        not_date_flag=_get_int(element, "notDateFlag"),
        free_ca_flag=_get_int(element, "freeCAFlag"),
        chk_rec_end=_get_int(element, "chkRecEnd"),
        chk_rec_day=_get_int(element, "chkRecDay"),
        chk_rec_no_service=_get_int(element, "chkRecNoService"),
        chk_duration_min=_get_int(element, "chkDurationMin"),
        chk_duration_max=_get_int(element, "chkDurationMax"),
        service_list=service_list,
    )


def _parse_recording_settings(element: Optional[etree._Element]) -> RecordingSettings:
    if element is None:
        return RecordingSettings()

    return RecordingSettings(
        rec_mode=_get_int(element, "recMode"),
        priority=_get_int(element, "priority"),
        tuijyuu_flag=_get_int(element, "tuijyuuFlag"),
        service_mode=_get_int(element, "serviceMode"),
        pittari_flag=_get_int(element, "pittariFlag"),
        bat_file_path=_get_text(element, "batFilePath", default=""),
        rec_folder_list=_get_text(element, "recFolderList", default=""),
        suspend_mode=_get_int(element, "suspendMode"),
        def_service_mode=_get_int(element, "defserviceMode"),
        reboot_flag=_get_int(element, "rebootFlag"),
        use_margine_flag=_get_int(element, "useMargineFlag"),
        start_margine=_get_int(element, "startMargine"),
        end_margine=_get_int(element, "endMargine"),
        continue_rec_flag=_get_int(element, "continueRecFlag"),
        partial_rec_flag=_get_int(element, "partialRecFlag"),
        tuner_id=_get_int(element, "tunerID"),
        partial_rec_folder=_get_text(element, "partialRecFolder", default=""),
    )


def _get_text(element: etree._Element, tag: str, default: Optional[str] = None) -> Optional[str]:
    """Safely extract text from XML element"""
    child = element.find(tag)
    if child is None or not child.text:
        return default
    return child.text.strip()


def _get_int(element: etree._Element, tag: str, default: int = 0) -> int:
    """Extract an integer child; missing or empty elements yield the default"""
    text = _get_text(element, tag)
    if text is None:
        return default
    try:
        return int(text)
    except ValueError as e:
        raise _ItemError(f"<{tag}> in <{element.tag}> is not an integer: '{text}'") from e
