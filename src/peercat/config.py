"""Configuration objects for the PeerCat Python SDK."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict

from ._version import __version__

DEFAULT_BASE_URL = "https://api.peerc.at"
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 3


@dataclass(frozen=True)
class ClientConfig:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    user_agent: str = f"peercat-python/{__version__}"
    # Browsers refuse a custom User-Agent; embedders running there turn this off.
    send_user_agent: bool = True
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("API key is required")
        if self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url[:-1])

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return cls(
            api_key=os.environ.get("PEERCAT_API_KEY", ""),
            base_url=os.environ.get("PEERCAT_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(os.environ.get("PEERCAT_TIMEOUT", str(DEFAULT_TIMEOUT))),
            max_retries=int(os.environ.get("PEERCAT_MAX_RETRIES", str(DEFAULT_MAX_RETRIES))),
        )


__all__ = ["ClientConfig", "DEFAULT_BASE_URL", "DEFAULT_TIMEOUT", "DEFAULT_MAX_RETRIES"]
