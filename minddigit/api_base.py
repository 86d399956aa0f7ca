"""MindDigit HTTP API core client.

Contains only the networking/transport layer: session handling, timeouts,
conditional GET bookkeeping, error translation and payload validation.
Endpoint helpers live in the ``api_room`` and ``api_game`` mixins and are
composed into the public client in ``api.py``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, TypeVar

import aiohttp
import async_timeout
from aiohttp import ClientSession
from pydantic import BaseModel, ValidationError

from .const import DEFAULT_BASE_URL, DEFAULT_RETRY_COUNT, DEFAULT_TIMEOUT, HEADERS

_LOGGER = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------


class MindDigitError(Exception):
    """Base exception for all MindDigit errors."""


class MindDigitRequestError(MindDigitError):
    """Raised when there is an error communicating with the game server.

    Carries enough context to tell a cold start from a flaky link.
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        attempts: int | None = None,
        last_error: Exception | None = None,
        status: int | None = None,
    ) -> None:
        """Initialize request error with context.

        Args:
            message: The error message
            endpoint: API endpoint that failed
            attempts: Number of attempts made
            last_error: The underlying exception that caused this error
            status: HTTP status code when the server answered
        """
        self.endpoint = endpoint
        self.attempts = attempts
        self.last_error = last_error
        self.status = status
        super().__init__(message)

    def __str__(self) -> str:
        context_parts = []
        if self.endpoint:
            context_parts.append(f"endpoint={self.endpoint}")
        if self.attempts:
            context_parts.append(f"attempts={self.attempts}")
        if self.status is not None:
            context_parts.append(f"status={self.status}")

        if context_parts:
            return f"{super().__str__()} ({', '.join(context_parts)})"
        return super().__str__()


class MindDigitTimeoutError(MindDigitRequestError):
    """Raised when a request to the game server times out."""


class MindDigitConnectionError(MindDigitRequestError):
    """Raised on network-level connectivity problems (DNS, refused, reset, …)."""


class MindDigitServerError(MindDigitRequestError):
    """The server answered with a 5xx status."""

    def __init__(self, message: str, body: str = "", **kwargs: Any) -> None:
        self.body = body
        super().__init__(message, **kwargs)


class MindDigitResponseError(MindDigitError):
    """The server rejected the request (``success: false`` or a 4xx status)."""

    def __init__(self, message: str, endpoint: str | None = None, status: int | None = None) -> None:
        self.message = message
        self.endpoint = endpoint
        self.status = status
        super().__init__(message)


class MindDigitInvalidDataError(MindDigitError):
    """The server responded with malformed or non-JSON data."""


class MindDigitActionError(MindDigitError):
    """A user action (guess, secret, start, skip, join) could not be completed."""

    def __init__(self, action: str, message: str) -> None:
        self.action = action
        self.message = message
        super().__init__(f"{action} failed: {message}")


def _extract_message(text: str) -> str | None:
    """Pull a human-readable message out of an error body, if any."""
    try:
        data = json.loads(text)
    except (ValueError, TypeError):
        return text.strip()[:200] or None
    if isinstance(data, dict):
        for key in ("error", "message", "reason"):
            if isinstance(data.get(key), str):
                return data[key]
    return None


# -----------------------------------------------------------------------------
# HTTP client – transport only
# -----------------------------------------------------------------------------


class MindDigitClient:
    """Minimal MindDigit HTTP API client – transport and validation only."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: ClientSession | None = None,
        retry_count: int = DEFAULT_RETRY_COUNT,
    ) -> None:
        """Instantiate the client.

        Args:
            base_url: Server root, endpoint paths are appended to it.
            timeout: Default per-request timeout (seconds).
            session: Optional shared *aiohttp* session. A private one is
                created lazily otherwise and closed by :meth:`close`.
            retry_count: Attempts per request for transient failures.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_count = max(1, retry_count)
        self._session = session
        self._owns_session = session is None

        # Conditional GET validators per endpoint: {"etag": ..., "last_modified": ...}
        self._validators: dict[str, dict[str, str]] = {}
        self._connection_failure_count = 0

    @property
    def session(self) -> ClientSession | None:
        return self._session

    async def close(self) -> None:
        """Close the private session; shared sessions are left alone."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def reset_validators(self) -> None:
        """Forget cached ETag/Last-Modified values (new room, new session)."""
        self._validators.clear()

    # ------------------------------------------------------------------
    # Low-level request helper -----------------------------------------
    # ------------------------------------------------------------------

    async def _request(
        self,
        endpoint: str,
        method: str = "GET",
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        conditional: bool = False,
    ) -> dict[str, Any] | None:
        """Perform an HTTP request and return the decoded JSON object.

        Returns ``None`` only for a ``304 Not Modified`` answer to a
        conditional request. Transient failures are retried with exponential
        backoff up to ``retry_count`` attempts.
        """
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        for attempt in range(self.retry_count):
            try:
                result = await self._request_once(
                    endpoint,
                    method,
                    params=params,
                    json_body=json_body,
                    timeout=timeout if timeout is not None else self.timeout,
                    conditional=conditional,
                )
            except (MindDigitTimeoutError, MindDigitConnectionError) as err:
                err.attempts = attempt + 1
                if attempt == self.retry_count - 1:
                    raise
                backoff_delay = 0.5 * (2**attempt)
                _LOGGER.debug(
                    "Request attempt %d/%d failed for %s, retrying in %.1fs: %s",
                    attempt + 1,
                    self.retry_count,
                    endpoint,
                    backoff_delay,
                    err,
                )
                await asyncio.sleep(backoff_delay)
            else:
                self._connection_failure_count = 0
                return result
        return None  # pragma: no cover - loop always returns or raises

    async def _request_once(
        self,
        endpoint: str,
        method: str,
        *,
        params: Mapping[str, Any] | None,
        json_body: Mapping[str, Any] | None,
        timeout: float,
        conditional: bool,
    ) -> dict[str, Any] | None:
        url = f"{self.base_url}{endpoint}"
        headers = dict(HEADERS)
        if conditional:
            cached = self._validators.get(endpoint, {})
            if "etag" in cached:
                headers["If-None-Match"] = cached["etag"]
            if "last_modified" in cached:
                headers["If-Modified-Since"] = cached["last_modified"]

        kwargs: dict[str, Any] = {"headers": headers}
        if params is not None:
            kwargs["params"] = dict(params)
        if json_body is not None:
            kwargs["json"] = dict(json_body)

        try:
            async with async_timeout.timeout(timeout):
                resp = await self._session.request(method, url, **kwargs)
                async with resp:
                    status = resp.status
                    if status == 304:
                        _LOGGER.debug("%s not modified", endpoint)
                        return None
                    text = await resp.text()
                    if status >= 500:
                        raise MindDigitServerError(
                            f"Server error from {endpoint}",
                            body=text or "",
                            endpoint=endpoint,
                            status=status,
                        )
                    if status >= 400:
                        raise MindDigitResponseError(
                            _extract_message(text or "") or f"HTTP {status}",
                            endpoint=endpoint,
                            status=status,
                        )
                    if conditional:
                        self._remember_validators(endpoint, resp.headers)
        except asyncio.TimeoutError as err:
            raise MindDigitTimeoutError(
                f"Request to {endpoint} timed out after {timeout:.1f}s",
                endpoint=endpoint,
                last_error=err,
            ) from err
        except aiohttp.ClientError as err:
            self._log_connection_loss(endpoint, err)
            raise MindDigitConnectionError(
                f"Request to {endpoint} failed: {err}",
                endpoint=endpoint,
                last_error=err,
            ) from err
        except UnicodeDecodeError as err:
            raise MindDigitInvalidDataError(f"Undecodable response body from {endpoint}: {err.reason}") from err

        if not text or not text.strip():
            _LOGGER.debug("Empty response from server for %s", endpoint)
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as json_err:
            raise MindDigitInvalidDataError(f"Invalid JSON response from {endpoint}: {json_err}") from json_err
        if not isinstance(data, dict):
            raise MindDigitInvalidDataError(f"Expected a JSON object from {endpoint}, got {type(data).__name__}")
        return data

    def _remember_validators(self, endpoint: str, headers: Mapping[str, str]) -> None:
        cached: dict[str, str] = {}
        etag = headers.get("ETag")
        last_modified = headers.get("Last-Modified")
        if etag:
            cached["etag"] = etag
        if last_modified:
            cached["last_modified"] = last_modified
        if cached:
            self._validators[endpoint] = cached

    def _log_connection_loss(self, endpoint: str, err: Exception) -> None:
        # Only log the first few connection losses, then throttle
        self._connection_failure_count += 1
        if self._connection_failure_count <= 3:
            _LOGGER.warning("Connection lost to %s (%s): %s", self.base_url, endpoint, err)
        elif self._connection_failure_count % 5 == 1:
            _LOGGER.debug(
                "Connection still failing to %s (attempt %d)",
                self.base_url,
                self._connection_failure_count,
            )

    # ------------------------------------------------------------------
    # Payload helpers ---------------------------------------------------
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_success(payload: Mapping[str, Any], endpoint: str) -> None:
        """Raise :class:`MindDigitResponseError` for a server-side rejection.

        A ``success: false`` answer flagged ``recovery: true`` carries usable
        fallback data and is processed normally.
        """
        if payload.get("success", True) is not False:
            return
        if payload.get("recovery"):
            _LOGGER.debug("Server answered %s in recovery mode", endpoint)
            return
        message = payload.get("error") or payload.get("message") or "request rejected"
        raise MindDigitResponseError(str(message), endpoint=endpoint)

    @staticmethod
    def _parse(model: type[_ModelT], payload: Mapping[str, Any], endpoint: str) -> _ModelT:
        """Validate *payload* into *model*, translating pydantic errors."""
        try:
            return model.model_validate(payload)
        except ValidationError as err:
            raise MindDigitInvalidDataError(
                f"Unexpected payload from {endpoint}: {err.error_count()} validation error(s)"
            ) from err
