"""
HTTP transport for dashstore.

A configured request/response pipeline on top of aiohttp: base address,
default headers, a bounded timeout on every request, credential
injection on the way out and session teardown on 401/403 on the way back.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

import aiohttp

from ..errors import (
    ErrorCode,
    RequestCancelled,
    TransportError,
    Unauthenticated,
    extract_server_message,
)
from .encoding import encode_payload

if TYPE_CHECKING:
    from ..auth.provider import TokenProvider


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3001/api"
DEFAULT_TIMEOUT = timedelta(seconds=30)

Timeout = Union[timedelta, float, int]


@dataclass
class TransportConfig:
    """HTTP transport configuration."""
    base_url: str = DEFAULT_API_URL
    timeout: timedelta = field(default_factory=lambda: DEFAULT_TIMEOUT)
    default_headers: Dict[str, str] = field(default_factory=lambda: {"Accept": "application/json"})
    method_override_field: str = "_method"
    multipart_method_override: bool = True


@dataclass
class TransportResponse:
    """A received response with its body already parsed."""
    status: int
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _seconds(timeout: Timeout) -> float:
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)


def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    if not params:
        return None

    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        else:
            cleaned[key] = str(value)
    return cleaned


class HttpTransport:
    """
    Request pipeline shared by every resource client.

    Args:
        config: Transport configuration
        token_provider: Source of the bearer credential; without one every
            request goes out unauthenticated
        session: Existing aiohttp session to reuse; one is created lazily
            otherwise and owned by the transport
    """

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        token_provider: Optional["TokenProvider"] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or TransportConfig()
        self.token_provider = token_provider
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def build_url(self, path: str = "") -> str:
        """Join the base address and a path without doubling slashes."""
        base = self.config.base_url.rstrip("/")
        path = str(path).strip("/")
        return f"{base}/{path}" if path else base

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the underlying session if the transport created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _authorization_headers(self, auth_required: bool) -> Dict[str, str]:
        if self.token_provider is None:
            if auth_required:
                raise Unauthenticated("Not authenticated")
            return {}

        if auth_required:
            credential = await self.token_provider.ensure_valid()
        else:
            credential = await self.token_provider.get_credential()
            if not self.token_provider.is_valid(credential):
                return {}

        return {"Authorization": f"Bearer {credential.token}"}

    async def request(
        self,
        method: str,
        path: str = "",
        *,
        params: Optional[Dict[str, Any]] = None,
        payload: Any = None,
        auth_required: bool = False,
        timeout: Optional[Timeout] = None,
        cancel: Optional[asyncio.Event] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TransportResponse:
        """
        Send a request.

        Args:
            method: HTTP method
            path: Path relative to the base address
            params: Query parameters (None values dropped)
            payload: Body; encoded as multipart when it carries files,
                JSON otherwise
            auth_required: Fail before the network unless a valid
                credential exists
            timeout: Per-call timeout overriding the configured default
            cancel: Event that aborts the request when set
            headers: Extra headers for this call

        Returns:
            TransportResponse for any status other than 401/403

        Raises:
            Unauthenticated: No valid credential for a protected call, or
                the server answered 401/403
            SessionExpired: The stored credential had expired
            TransportError: Network failure, timeout or malformed response
            RequestCancelled: The cancel event was set first
        """
        method = method.upper()
        url = self.build_url(path)

        request_headers = dict(self.config.default_headers)
        request_headers.update(await self._authorization_headers(auth_required))

        encoded = encode_payload(payload)
        if (
            encoded.multipart
            and method in ("PATCH", "PUT")
            and self.config.multipart_method_override
        ):
            encoded.data.add_field(self.config.method_override_field, method)
            method = "POST"

        request_headers.update(encoded.headers)
        if headers:
            request_headers.update(headers)

        client_timeout = aiohttp.ClientTimeout(
            total=_seconds(timeout if timeout is not None else self.config.timeout)
        )

        send = self._send(method, url, _clean_params(params), encoded.data, request_headers, client_timeout)
        if cancel is None:
            response = await send
        else:
            response = await self._send_cancellable(send, cancel, method, url)

        return await self._handle_response(response)

    async def _send(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, str]],
        data: Any,
        headers: Dict[str, str],
        timeout: aiohttp.ClientTimeout,
    ) -> TransportResponse:
        session = await self._get_session()
        logger.debug(f"{method} {url}")

        try:
            async with session.request(
                method, url, params=params, data=data, headers=headers, timeout=timeout
            ) as resp:
                raw = await resp.read()
                status = resp.status
                content_type = resp.headers.get("Content-Type", "")
                response_headers = dict(resp.headers)
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Request timed out: {method} {url}", code=ErrorCode.TIMEOUT, cause=e
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Network error: {method} {url}: {e}", cause=e) from e

        logger.debug(f"{method} {url} -> {status}")
        body = self._parse_body(raw, content_type, status, method, url)
        return TransportResponse(status=status, body=body, headers=response_headers)

    @staticmethod
    def _parse_body(raw: bytes, content_type: str, status: int, method: str, url: str) -> Any:
        if not raw:
            return None

        text = raw.decode("utf-8", errors="replace")
        try:
            return json.loads(text)
        except ValueError as e:
            if "json" in content_type.lower() and 200 <= status < 300:
                raise TransportError(
                    f"Malformed JSON response: {method} {url}",
                    code=ErrorCode.MALFORMED_RESPONSE,
                    status=status,
                    cause=e,
                ) from e
            return text

    @staticmethod
    async def _send_cancellable(send, cancel: asyncio.Event, method: str, url: str) -> TransportResponse:
        if cancel.is_set():
            send.close()
            raise RequestCancelled(f"Request cancelled: {method} {url}")

        send_task = asyncio.ensure_future(send)
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()

        if send_task.done():
            return send_task.result()

        send_task.cancel()
        try:
            await send_task
        except asyncio.CancelledError:
            pass
        raise RequestCancelled(f"Request cancelled: {method} {url}")

    async def _handle_response(self, response: TransportResponse) -> TransportResponse:
        if response.status in (401, 403):
            if self.token_provider is not None:
                await self.token_provider.clear_credential(reason=f"rejected ({response.status})")
            message = extract_server_message(response.body) or "Not authenticated"
            raise Unauthenticated(message, status=response.status)

        return response

    async def get(self, path: str = "", **kwargs: Any) -> TransportResponse:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str = "", **kwargs: Any) -> TransportResponse:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str = "", **kwargs: Any) -> TransportResponse:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str = "", **kwargs: Any) -> TransportResponse:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str = "", **kwargs: Any) -> TransportResponse:
        return await self.request("DELETE", path, **kwargs)
