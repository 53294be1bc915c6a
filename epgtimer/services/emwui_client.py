"""
EMWUI API client

Issues requests against the EpgTimer EMWUI endpoints and turns every response
into either typed entities or a typed EMWUIError. Calls are synchronous and
sequential; nothing is retried.
"""
import logging
from typing import Callable, TypeVar

import httpx
from lxml import etree # type: ignore

from epgtimer.errors import (
    ApplicationError,
    HTTPStatusError,
    InvalidRuleIdError,
    TransportError,
)
from epgtimer.schemas import (
    AutoAddRule,
    AutoAddRuleRequest,
    AutoAddRuleResponse,
    ChannelInfo,
    ChannelRef,
    Envelope,
    ProgramEvent,
    RecordingEntry,
    ReservationEntry,
)
from epgtimer.services.form_codec import (
    FORM_CONTENT_TYPE,
    encode_delete_form,
    encode_rule_form,
    extract_token,
    validate_rule_request,
)
from epgtimer.services.xml_parser_service import (
    parse_auto_add_rule,
    parse_channel_info,
    parse_envelope,
    parse_program_event,
    parse_recording_entry,
    parse_reservation_entry,
    parse_set_auto_add_response,
)
from epgtimer.utils.logging_helpers import log_request, log_response


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 10.0

TOKEN_PAGE_PATH = "/EMWUI/autoaddepg.html"
SET_AUTO_ADD_PATH = "/api/SetAutoAdd"
ENUM_AUTO_ADD_PATH = "/api/EnumAutoAdd"
ENUM_SERVICE_PATH = "/api/EnumService"
ENUM_EVENT_INFO_PATH = "/api/EnumEventInfo"
ENUM_REC_INFO_PATH = "/api/EnumRecInfo"
ENUM_RESERVE_INFO_PATH = "/api/EnumReserveInfo"

PROGRAM_GUIDE_PAGE_SIZE = 1000


class EMWUIClient:
    """
    Client for a single EMWUI server.

    Args:
        base_url: Server root, e.g. http://192.168.1.10:5510
        timeout: HTTP timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        transport: httpx.BaseTransport | None = None
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "EMWUIClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # Rules

    def fetch_token(self) -> str:
        """Fetch the CSRF token from the EMWUI auto-add page"""
        body = self._send("GET", TOKEN_PAGE_PATH)
        return extract_token(body)

    def create_rule(self, request: AutoAddRuleRequest) -> AutoAddRuleResponse:
        """
        Create an automatic recording rule

        Validation runs before any network call. The token is fetched first
        and injected into the form.

        Raises:
            InvalidInputError: If the request is incomplete or malformed
            EMWUIError: For any transport, status, decode or backend failure
        """
        validate_rule_request(request)

        ctok = self.fetch_token()
        body = encode_rule_form(request.with_token(ctok))

        logger.info(f"Creating rule: andKey={request.and_key!r}, {len(request.service_list)} channels")
        return self._submit_rule_change(0, body)

    def delete_rule(self, rule_id: int) -> AutoAddRuleResponse:
        """
        Delete an automatic recording rule

        Raises:
            InvalidRuleIdError: If rule_id is not positive (no request is made)
            EMWUIError: For any transport, status, decode or backend failure
        """
        if rule_id <= 0:
            raise InvalidRuleIdError(rule_id)

        ctok = self.fetch_token()
        logger.info(f"Deleting rule {rule_id}")
        return self._submit_rule_change(rule_id, encode_delete_form(ctok))

    def list_rules(self) -> Envelope[AutoAddRule]:
        """All automatic recording rules"""
        return self._get_envelope(ENUM_AUTO_ADD_PATH, "autoaddinfo", parse_auto_add_rule)

    # Listings

    def list_channels(self) -> Envelope[ChannelInfo]:
        """All services known to EpgTimer"""
        return self._get_envelope(ENUM_SERVICE_PATH, "serviceinfo", parse_channel_info)

    def list_program_guide(self, channel: ChannelRef) -> Envelope[ProgramEvent]:
        """Program guide events of one channel"""
        params = {
            "ONID": channel.onid,
            "TSID": channel.tsid,
            "SID": channel.sid,
            "basic": 0,
            "count": PROGRAM_GUIDE_PAGE_SIZE,
        }
        return self._get_envelope(ENUM_EVENT_INFO_PATH, "eventinfo", parse_program_event, params=params)

    def list_recordings(self) -> Envelope[RecordingEntry]:
        """
        Recorded programs

        EMWUI pages recordings 200 at a time; only the first page is fetched.
        """
        return self._get_envelope(ENUM_REC_INFO_PATH, "recinfo", parse_recording_entry)

    def list_reservations(self) -> Envelope[ReservationEntry]:
        """Pending reservations"""
        return self._get_envelope(ENUM_RESERVE_INFO_PATH, "reserveinfo", parse_reservation_entry)

    # Internals

    def _get_envelope(
        self,
        path: str,
        item_tag: str,
        parse_item: Callable[[etree._Element], T],
        params: dict | None = None
    ) -> Envelope[T]:
        body = self._send("GET", path, params=params)
        return parse_envelope(body, item_tag, parse_item, url=self.base_url + path)

    def _submit_rule_change(self, rule_id: int, form_body: bytes) -> AutoAddRuleResponse:
        body = self._send(
            "POST",
            SET_AUTO_ADD_PATH,
            params={"id": rule_id},
            content=form_body,
            headers={"Content-Type": FORM_CONTENT_TYPE},
        )
        response = parse_set_auto_add_response(body, url=self.base_url + SET_AUTO_ADD_PATH)

        if not response.is_success:
            raise ApplicationError(response.error_message)

        logger.info(f"EMWUI accepted change: {response.success}")
        return response

    def _send(self, method: str, path: str, **kwargs) -> bytes:
        """
        Perform one request and return the body of a 2xx response

        Raises:
            TransportError: On connection failures and timeouts
            HTTPStatusError: On non-2xx responses
        """
        url = self.base_url + path
        log_request(logger, method, url)

        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportError(
                f"connection timeout: EMWUI server at {self.base_url} did not respond in time ({type(e).__name__})",
                endpoint=self.base_url,
                timed_out=True,
            ) from e
        except httpx.TransportError as e:
            raise TransportError(
                f"failed to connect to EMWUI service at {self.base_url}: {e}",
                endpoint=self.base_url,
            ) from e

        body = response.content
        log_response(logger, response.status_code, len(body))

        if not response.is_success:
            raise HTTPStatusError(
                response.status_code,
                body.decode("utf-8", errors="replace"),
                url=str(response.request.url),
            )

        return body
