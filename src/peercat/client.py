"""Python clients for the PeerCat image generation API."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from .config import ClientConfig
from .errors import (
    NetworkError,
    PeerCatError,
    RateLimitInfo,
    RequestTimeoutError,
    parse_rate_limit_headers,
)
from .retry import RetryDecision, RetryPolicy
from .types import (
    Balance,
    CreateKeyResult,
    GenerateResult,
    GenerationMode,
    HistoryResponse,
    KeysResponse,
    Model,
    OnChainGenerationStatus,
    PriceResponse,
    PromptSubmission,
)

logger = logging.getLogger(__name__)


def _compact(**fields: Any) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def _history_path(limit: Optional[int], offset: Optional[int]) -> str:
    query: Dict[str, str] = {}
    if limit:
        query["limit"] = str(limit)
    if offset:
        query["offset"] = str(offset)
    return f"/v1/history?{urlencode(query)}" if query else "/v1/history"


class _BaseClient:
    """Request building and response classification shared by both clients."""

    def __init__(self, config: Union[ClientConfig, str]) -> None:
        if isinstance(config, str):
            config = ClientConfig(api_key=config)
        self._config = config
        self._retry = RetryPolicy(max_retries=config.max_retries)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        if self._config.send_user_agent:
            headers["User-Agent"] = self._config.user_agent
        headers.update(self._config.headers)
        return headers

    @staticmethod
    def _encode(body: Optional[Dict[str, Any]]) -> Optional[str]:
        if not body:
            return None
        return json.dumps(body, separators=(",", ":"))

    def _handle_response(self, response: httpx.Response, decode: bool = True) -> Any:
        rate_limit = parse_rate_limit_headers(response.headers)
        if not response.is_success:
            raise self._error_from_response(response, rate_limit)
        if not decode:
            return None
        return response.json()

    @staticmethod
    def _error_from_response(response: httpx.Response, rate_limit: RateLimitInfo) -> PeerCatError:
        try:
            return PeerCatError.from_response(response.json(), response.status_code, rate_limit)
        except (ValueError, ValidationError):
            # Non-JSON or unstructured bodies (HTML error pages, proxies).
            fallback = {
                "error": {
                    "type": "api_error",
                    "code": f"http_{response.status_code}",
                    "message": f"HTTP {response.status_code}: {response.reason_phrase}",
                }
            }
            return PeerCatError.from_response(fallback, response.status_code, rate_limit)

    def _timeout_error(self) -> RequestTimeoutError:
        return RequestTimeoutError(f"Request timed out after {self._config.timeout}s")

    def _transport_error(self, exc: httpx.TransportError) -> PeerCatError:
        if isinstance(exc, httpx.TimeoutException):
            error: PeerCatError = self._timeout_error()
        else:
            error = NetworkError("Network request failed")
        error.__cause__ = exc
        return error

    def _decide(self, method: str, path: str, error: PeerCatError, attempt: int) -> RetryDecision:
        decision = self._retry.decide(error, attempt)
        if decision.retry:
            logger.warning(
                "%s %s failed (%s: %s), retrying in %.1fs (attempt %d/%d)",
                method,
                path,
                error.__class__.__name__,
                error.message,
                decision.delay,
                attempt + 1,
                self._retry.max_retries + 1,
            )
        elif self._retry.is_retryable(error):
            logger.error("%s %s failed after %d attempts: %s", method, path, attempt + 1, error.message)
        return decision


class PeerCat(_BaseClient):
    """Blocking client.

    Example::

        with PeerCat("pcat_live_xxx") as client:
            result = client.generate("A beautiful sunset over mountains", model="stable-diffusion-xl")
            print(result["imageUrl"])
    """

    def __init__(
        self,
        config: Union[ClientConfig, str],
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(config)
        self._client = httpx.Client(
            base_url=self._config.base_url,
            timeout=httpx.Timeout(self._config.timeout),
            transport=transport,
        )

    def __enter__(self) -> "PeerCat":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _sleep(self, seconds: float) -> None:
        time.sleep(seconds)

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None, decode: bool = True) -> Any:
        headers = self._headers()
        content = self._encode(body)
        for attempt in range(self._retry.max_retries + 1):
            logger.debug("%s %s attempt=%d", method, path, attempt + 1)
            try:
                response = self._client.request(method, path, content=content, headers=headers)
            except httpx.TransportError as exc:
                error = self._transport_error(exc)
            else:
                try:
                    return self._handle_response(response, decode)
                except PeerCatError as exc:
                    error = exc
            decision = self._decide(method, path, error, attempt)
            if not decision.retry:
                raise error
            self._sleep(decision.delay)
        raise NetworkError("Request failed after retries")

    # Image generation

    def generate(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        mode: Optional[GenerationMode] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerateResult:
        """Generate an image from a text prompt (max 2000 characters)."""
        return self._request("POST", "/v1/generate", _compact(prompt=prompt, model=model, mode=mode, options=options))

    # Models and pricing

    def get_models(self) -> List[Model]:
        return self._request("GET", "/v1/models")["models"]

    def get_prices(self) -> PriceResponse:
        return self._request("GET", "/v1/price")

    # Account

    def get_balance(self) -> Balance:
        return self._request("GET", "/v1/balance")

    def get_history(self, limit: Optional[int] = None, offset: Optional[int] = None) -> HistoryResponse:
        return self._request("GET", _history_path(limit, offset))

    # API keys

    def create_key(
        self,
        *,
        message: str,
        signature: str,
        public_key: str,
        name: Optional[str] = None,
    ) -> CreateKeyResult:
        """Create an API key from a signed wallet message.

        The full key is only present in this response; store it right away.
        """
        body = _compact(name=name, message=message, signature=signature, publicKey=public_key)
        return self._request("POST", "/v1/keys", body)

    def list_keys(self) -> KeysResponse:
        return self._request("GET", "/v1/keys")

    def revoke_key(self, key_id: str) -> None:
        self._request("DELETE", f"/v1/keys/{key_id}", decode=False)

    def update_key_name(self, key_id: str, name: str) -> None:
        self._request("PATCH", f"/v1/keys/{key_id}", {"name": name}, decode=False)

    # On-chain payments

    def submit_prompt(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
        callback_url: Optional[str] = None,
    ) -> PromptSubmission:
        """Register a prompt and get the treasury address and amount to pay on-chain."""
        body = _compact(prompt=prompt, model=model, options=options, callbackUrl=callback_url)
        return self._request("POST", "/v1/prompts", body)

    def get_on_chain_status(self, tx_signature: str) -> OnChainGenerationStatus:
        return self._request("GET", f"/v1/generate/{tx_signature}")

    def close(self) -> None:
        self._client.close()


class AsyncPeerCat(_BaseClient):
    """asyncio counterpart of :class:`PeerCat` with the same methods as coroutines."""

    def __init__(
        self,
        config: Union[ClientConfig, str],
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(config)
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=httpx.Timeout(self._config.timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "AsyncPeerCat":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None, decode: bool = True) -> Any:
        headers = self._headers()
        content = self._encode(body)
        for attempt in range(self._retry.max_retries + 1):
            logger.debug("%s %s attempt=%d", method, path, attempt + 1)
            try:
                # httpx timeouts are per phase; this bounds the whole attempt.
                response = await asyncio.wait_for(
                    self._client.request(method, path, content=content, headers=headers),
                    timeout=self._config.timeout,
                )
            except asyncio.TimeoutError as exc:
                error = self._timeout_error()
                error.__cause__ = exc
            except httpx.TransportError as exc:
                error = self._transport_error(exc)
            else:
                try:
                    return self._handle_response(response, decode)
                except PeerCatError as exc:
                    error = exc
            decision = self._decide(method, path, error, attempt)
            if not decision.retry:
                raise error
            await self._sleep(decision.delay)
        raise NetworkError("Request failed after retries")

    async def generate(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        mode: Optional[GenerationMode] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerateResult:
        return await self._request(
            "POST", "/v1/generate", _compact(prompt=prompt, model=model, mode=mode, options=options)
        )

    async def get_models(self) -> List[Model]:
        response = await self._request("GET", "/v1/models")
        return response["models"]

    async def get_prices(self) -> PriceResponse:
        return await self._request("GET", "/v1/price")

    async def get_balance(self) -> Balance:
        return await self._request("GET", "/v1/balance")

    async def get_history(self, limit: Optional[int] = None, offset: Optional[int] = None) -> HistoryResponse:
        return await self._request("GET", _history_path(limit, offset))

    async def create_key(
        self,
        *,
        message: str,
        signature: str,
        public_key: str,
        name: Optional[str] = None,
    ) -> CreateKeyResult:
        body = _compact(name=name, message=message, signature=signature, publicKey=public_key)
        return await self._request("POST", "/v1/keys", body)

    async def list_keys(self) -> KeysResponse:
        return await self._request("GET", "/v1/keys")

    async def revoke_key(self, key_id: str) -> None:
        await self._request("DELETE", f"/v1/keys/{key_id}", decode=False)

    async def update_key_name(self, key_id: str, name: str) -> None:
        await self._request("PATCH", f"/v1/keys/{key_id}", {"name": name}, decode=False)

    async def submit_prompt(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
        callback_url: Optional[str] = None,
    ) -> PromptSubmission:
        body = _compact(prompt=prompt, model=model, options=options, callbackUrl=callback_url)
        return await self._request("POST", "/v1/prompts", body)

    async def get_on_chain_status(self, tx_signature: str) -> OnChainGenerationStatus:
        return await self._request("GET", f"/v1/generate/{tx_signature}")

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["PeerCat", "AsyncPeerCat"]
