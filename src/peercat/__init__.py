"""PeerCat Python SDK."""

from ._version import __version__
from .client import AsyncPeerCat, PeerCat
from .config import ClientConfig
from .errors import (
    AuthenticationError,
    ErrorKind,
    InsufficientCreditsError,
    InvalidRequestError,
    NetworkError,
    NotFoundError,
    PeerCatError,
    RateLimitError,
    RateLimitInfo,
    RequestTimeoutError,
)
from .retry import RetryDecision, RetryPolicy

__all__ = [
    "__version__",
    "PeerCat",
    "AsyncPeerCat",
    "ClientConfig",
    "RetryPolicy",
    "RetryDecision",
    "ErrorKind",
    "RateLimitInfo",
    "PeerCatError",
    "AuthenticationError",
    "InvalidRequestError",
    "InsufficientCreditsError",
    "RateLimitError",
    "NotFoundError",
    "NetworkError",
    "RequestTimeoutError",
]
