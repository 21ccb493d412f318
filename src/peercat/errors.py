"""Exception types raised by the PeerCat SDK."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel


class ErrorKind(str, Enum):
    API = "api"
    AUTHENTICATION = "authentication"
    INVALID_REQUEST = "invalid_request"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    RATE_LIMIT = "rate_limit"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    TIMEOUT = "timeout"


class ErrorDetail(BaseModel):
    type: str
    code: str
    message: str
    param: Optional[str] = None


class ErrorEnvelope(BaseModel):
    """Structured error body: ``{"error": {"type", "code", "message", "param"}}``."""

    error: ErrorDetail


@dataclass(frozen=True)
class RateLimitInfo:
    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset: Optional[int] = None
    retry_after: Optional[int] = None


def _header_int(headers: Mapping[str, str], name: str) -> Optional[int]:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_rate_limit_headers(headers: Mapping[str, str]) -> RateLimitInfo:
    """Read the throttling hints the API attaches to every response."""
    return RateLimitInfo(
        limit=_header_int(headers, "X-RateLimit-Limit"),
        remaining=_header_int(headers, "X-RateLimit-Remaining"),
        reset=_header_int(headers, "X-RateLimit-Reset"),
        retry_after=_header_int(headers, "Retry-After"),
    )


class PeerCatError(Exception):
    """Base error for everything the SDK raises.

    Attributes:
        message: human readable description from the API
        type: error category tag declared by the API
        code: machine readable error code
        param: request parameter that caused the error, if any
        status: HTTP status associated with the category (0 for transport failures)
    """

    kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        type: str,
        code: str,
        param: Optional[str] = None,
        status: int = 500,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type = type
        self.code = code
        self.param = param
        self.status = status

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status={self.status}, type={self.type!r}, code={self.code!r}, message={self.message!r})"

    @classmethod
    def from_response(
        cls,
        payload: Mapping[str, Any],
        status: int,
        rate_limit: Optional[RateLimitInfo] = None,
    ) -> "PeerCatError":
        """Map a structured API error body onto the matching exception.

        The declared ``type`` drives the mapping; ``status`` is only kept for
        categories the SDK does not know about. Raises ``pydantic.ValidationError``
        when ``payload`` is not a structured error body.
        """
        detail = ErrorEnvelope.model_validate(payload).error
        if detail.type == "authentication_error":
            return AuthenticationError(detail.message, detail.code, detail.param)
        if detail.type == "invalid_request_error":
            return InvalidRequestError(detail.message, detail.code, detail.param)
        if detail.type == "insufficient_credits":
            return InsufficientCreditsError(detail.message, detail.code)
        if detail.type == "rate_limit_error":
            return RateLimitError(detail.message, detail.code, rate_limit)
        if detail.type == "not_found":
            return NotFoundError(detail.message, detail.code, detail.param)
        return PeerCatError(detail.message, detail.type, detail.code, detail.param, status)


class AuthenticationError(PeerCatError):
    """Invalid or missing API key."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, code: str, param: Optional[str] = None) -> None:
        super().__init__(message, "authentication_error", code, param, 401)


class InvalidRequestError(PeerCatError):
    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str, code: str, param: Optional[str] = None) -> None:
        super().__init__(message, "invalid_request_error", code, param, 400)


class InsufficientCreditsError(PeerCatError):
    kind = ErrorKind.INSUFFICIENT_CREDITS

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message, "insufficient_credits", code, None, 402)


class RateLimitError(PeerCatError):
    """Too many requests; carries the rate-limit headers of the rejecting response."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(self, message: str, code: str, rate_limit: Optional[RateLimitInfo] = None) -> None:
        super().__init__(message, "rate_limit_error", code, None, 429)
        self.rate_limit = rate_limit or RateLimitInfo()

    @property
    def limit(self) -> Optional[int]:
        return self.rate_limit.limit

    @property
    def remaining(self) -> Optional[int]:
        return self.rate_limit.remaining

    @property
    def reset(self) -> Optional[int]:
        return self.rate_limit.reset

    @property
    def retry_after(self) -> Optional[int]:
        """Seconds the server asked us to wait before retrying."""
        return self.rate_limit.retry_after


class NotFoundError(PeerCatError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, code: str, param: Optional[str] = None) -> None:
        super().__init__(message, "not_found", code, param, 404)


class NetworkError(PeerCatError):
    """The request never produced an HTTP response (connection refused, DNS, reset)."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str = "Network request failed") -> None:
        super().__init__(message, "network_error", "connection_failed", None, 0)


class RequestTimeoutError(PeerCatError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = "Request timed out") -> None:
        super().__init__(message, "timeout_error", "timeout", None, 0)


__all__ = [
    "ErrorKind",
    "ErrorDetail",
    "ErrorEnvelope",
    "RateLimitInfo",
    "parse_rate_limit_headers",
    "PeerCatError",
    "AuthenticationError",
    "InvalidRequestError",
    "InsufficientCreditsError",
    "RateLimitError",
    "NotFoundError",
    "NetworkError",
    "RequestTimeoutError",
]
