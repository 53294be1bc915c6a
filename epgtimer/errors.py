"""
Error taxonomy for the EMWUI client.

Every failure is raised as an EMWUIError subclass carrying an ErrorKind, so the
command layer can pick troubleshooting guidance from the kind instead of
inspecting message text.
"""
from enum import Enum


class ErrorKind(str, Enum):
    """Category of a failure, assigned where the failure happens"""
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    UNEXPECTED_HTML = "unexpected_html"
    DECODE = "decode"
    TOKEN = "token"
    APPLICATION = "application"
    OUTPUT = "output"


_HINTS: dict[ErrorKind, str] = {
    ErrorKind.CONFIGURATION: (
        "Please set the endpoint using:\n"
        "  1. --endpoint flag: epgtimer --endpoint http://192.168.1.10:5510 list\n"
        "  2. EMWUI_ENDPOINT environment variable: export EMWUI_ENDPOINT=http://192.168.1.10:5510"
    ),
    ErrorKind.TRANSPORT: (
        "Troubleshooting:\n"
        "  1. Check that EpgTimer is running\n"
        "  2. Verify EMWUI_ENDPOINT environment variable or --endpoint flag\n"
        "  3. Confirm network connectivity to the EMWUI server\n"
        "  4. Ensure the EMWUI web interface is accessible"
    ),
    ErrorKind.UNEXPECTED_HTML: (
        "Possible causes:\n"
        "  1. Incorrect endpoint URL\n"
        "  2. API path has changed\n"
        "  3. EMWUI version incompatibility"
    ),
    ErrorKind.DECODE: "The EMWUI response did not match the expected XML structure.",
    ErrorKind.TOKEN: "Check that the EMWUI autoaddepg.html page is reachable and not customized.",
}


class EMWUIError(Exception):
    """Base class for all client failures"""
    kind: ErrorKind = ErrorKind.APPLICATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def hint(self) -> str | None:
        """Troubleshooting guidance for this kind of failure"""
        return _HINTS.get(self.kind)


class ConfigurationError(EMWUIError):
    """Raised when the endpoint is missing or invalid"""
    kind = ErrorKind.CONFIGURATION


class InvalidInputError(EMWUIError):
    """Raised when user input is rejected before any network call"""
    kind = ErrorKind.VALIDATION


class ChannelFormatError(InvalidInputError):
    """Raised when a channel is not in ONID-TSID-SID format"""

    def __init__(self, raw: str, *, index: int | None = None, reason: str | None = None):
        self.raw = raw
        self.index = index
        self.reason = reason
        if index is not None:
            message = f"serviceList[{index}] has invalid format: expected 'ONID-TSID-SID', got '{raw}'"
        else:
            message = f"invalid format: expected 'ONID-TSID-SID', got '{raw}'"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)

    @property
    def hint(self) -> str:
        return "Expected channel format: ONID-TSID-SID (e.g., \"32736-32736-1024\")"


class MissingSearchKeywordError(InvalidInputError):
    """Raised when a rule has no search keyword"""

    def __init__(self):
        super().__init__("andKey is required (search keyword cannot be empty)")


class MissingChannelsError(InvalidInputError):
    """Raised when a rule has no channels"""

    def __init__(self):
        super().__init__("serviceList is required (at least one channel must be specified)")


class InvalidRuleIdError(InvalidInputError):
    """Raised when a rule id is not a positive integer"""

    def __init__(self, rule_id: object):
        self.rule_id = rule_id
        super().__init__(f"invalid rule ID '{rule_id}': must be greater than 0")


class TransportError(EMWUIError):
    """Raised when the backend cannot be reached"""
    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, *, endpoint: str, timed_out: bool = False):
        self.endpoint = endpoint
        self.timed_out = timed_out
        super().__init__(message)


class HTTPStatusError(EMWUIError):
    """Raised for non-2xx responses"""
    kind = ErrorKind.HTTP_STATUS

    def __init__(self, status_code: int, body: str, *, url: str):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"API returned status {status_code}: {body}")


class UnexpectedHTMLError(EMWUIError):
    """Raised when an HTML page arrives where XML was expected"""
    kind = ErrorKind.UNEXPECTED_HTML

    def __init__(self, body: str, *, url: str):
        self.body = body
        self.url = url
        super().__init__(f"unexpected HTML response from {url} (expected XML)\nResponse body: {body}")


class DecodeError(EMWUIError):
    """Raised when a response cannot be decoded into the expected envelope"""
    kind = ErrorKind.DECODE

    def __init__(self, reason: str, body: str):
        self.reason = reason
        self.body = body
        super().__init__(f"failed to parse XML response: {reason}\nResponse body: {body}")


class TokenError(EMWUIError):
    """Base class for CSRF token extraction failures"""
    kind = ErrorKind.TOKEN


class TokenNotFoundError(TokenError):
    def __init__(self):
        super().__init__("ctok not found in HTML page")


class EmptyTokenError(TokenError):
    def __init__(self):
        super().__init__("ctok value is empty")


class ApplicationError(EMWUIError):
    """Raised when the backend answers with an error message"""
    kind = ErrorKind.APPLICATION

    def __init__(self, backend_message: str):
        self.backend_message = backend_message
        super().__init__(f"API returned error: {backend_message}")


class OutputWriteError(EMWUIError):
    """Raised when rendered output cannot be written to disk"""
    kind = ErrorKind.OUTPUT

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"failed to write output to file '{path}': {reason}")


__all__ = [
    "ErrorKind",
    "EMWUIError",
    "ConfigurationError",
    "InvalidInputError",
    "ChannelFormatError",
    "MissingSearchKeywordError",
    "MissingChannelsError",
    "InvalidRuleIdError",
    "TransportError",
    "HTTPStatusError",
    "UnexpectedHTMLError",
    "DecodeError",
    "TokenError",
    "TokenNotFoundError",
    "EmptyTokenError",
    "ApplicationError",
    "OutputWriteError",
]
