"""
CSRF token extraction and SetAutoAdd form encoding

EMWUI rejects state-changing POSTs without the `ctok` value embedded in its
autoaddepg.html form, and it expects the create-rule form in the same shape a
browser submits it: a blank serviceList placeholder before the real channels
and presetID sent twice.
"""
import logging
import re
from urllib.parse import urlencode

from epgtimer.errors import (
    EmptyTokenError,
    MissingChannelsError,
    MissingSearchKeywordError,
    TokenNotFoundError,
)
from epgtimer.schemas import AutoAddRuleRequest, ChannelRef

logger = logging.getLogger(__name__)

_INPUT_TAG = re.compile(r"<input\b[^>]*>", re.IGNORECASE)
_CTOK_NAME = re.compile(r"""(?<![\w-])name\s*=\s*["']ctok["']""", re.IGNORECASE)
_VALUE_ATTR = re.compile(r"""(?<![\w-])value\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def extract_token(html: bytes) -> str:
    """
    Find the hidden `ctok` input in an EMWUI page and return its value

    Args:
        html: Raw HTML bytes

    Returns:
        Non-empty token string

    Raises:
        TokenNotFoundError: If no input named ctok exists
        EmptyTokenError: If the input exists but has no value
    """
    text = html.decode("utf-8", errors="replace")

    for tag in _INPUT_TAG.findall(text):
        if not _CTOK_NAME.search(tag):
            continue

        value_match = _VALUE_ATTR.search(tag)
        if value_match is None:
            raise EmptyTokenError()

        token = value_match.group(1) if value_match.group(1) is not None else value_match.group(2)
        if not token:
            raise EmptyTokenError()

        logger.debug(f"Extracted ctok ({len(token)} characters)")
        return token

    raise TokenNotFoundError()


def validate_rule_request(request: AutoAddRuleRequest) -> list[ChannelRef]:
    """
    Check the user-supplied parts of a create-rule request

    Returns:
        Parsed channels, in input order

    Raises:
        MissingSearchKeywordError: If and_key is blank
        MissingChannelsError: If service_list is empty
        ChannelFormatError: If any channel is not ONID-TSID-SID
    """
    if not request.and_key.strip():
        raise MissingSearchKeywordError()

    if not request.service_list:
        raise MissingChannelsError()

    return [
        ChannelRef.parse(service, index=index)
        for index, service in enumerate(request.service_list)
    ]


def rule_form_fields(request: AutoAddRuleRequest) -> list[tuple[str, str]]:
    """Ordered (name, value) pairs of the create-rule form"""
    fields: list[tuple[str, str]] = [
        ("addchg", str(request.addchg)),
        ("andKey", request.and_key),
        ("notKey", request.not_key),
        ("titleOnlyFlag", str(request.title_only_flag)),
        # The EMWUI page always submits an empty serviceList first
        ("serviceList", ""),
    ]
    fields.extend(("serviceList", service) for service in request.service_list)
    fields.extend([
        ("dayList", request.day_list),
        ("startTime", request.start_time),
        ("endTime", request.end_time),
        ("dateList", request.date_list),
        ("freeCAFlag", str(request.free_ca_flag)),
        ("chkDurationMin", str(request.chk_duration_min)),
        ("chkDurationMax", str(request.chk_duration_max)),
        ("chkRecDay", str(request.chk_rec_day)),
        # presetID appears twice in the EMWUI form
        ("presetID", str(request.preset_id)),
        ("presetID", str(request.preset_id)),
        ("ctok", request.ctok),
        ("recMode", str(request.rec_mode)),
        ("tuijyuuFlag", str(request.tuijyuu_flag)),
        ("priority", str(request.priority)),
        ("useDefMarginFlag", str(request.use_def_margin_flag)),
        ("serviceMode", str(request.service_mode)),
        ("tunerID", str(request.tuner_id)),
        ("suspendMode", str(request.suspend_mode)),
        ("batFilePath", request.bat_file_path),
        ("batFileTag", request.bat_file_tag),
    ])
    return fields


def encode_rule_form(request: AutoAddRuleRequest) -> bytes:
    """
    Validate and encode a create-rule request as form-urlencoded bytes

    Raises:
        MissingSearchKeywordError, MissingChannelsError, ChannelFormatError
    """
    validate_rule_request(request)
    return urlencode(rule_form_fields(request)).encode("ascii")


def encode_delete_form(ctok: str) -> bytes:
    """Form body that deletes the rule named in the query string"""
    return urlencode([("del", "1"), ("ctok", ctok)]).encode("ascii")
