from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Protocol

import requests

from .errors import DecodeError, HttpError, NetworkError, RateLimited, Unauthorized
from .paths import JSONValue

logger = logging.getLogger(__name__)

AUTH_HEADER = "x-api-key"
DEFAULT_TIMEOUT = 10.0


class CancelToken:
    """Cooperative abort signal shared between the event loop and a worker thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks, self._callbacks = self._callbacks, []
        for cb in callbacks:
            cb()

    def on_cancel(self, cb: Callable[[], None]) -> None:
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(cb)
                return
        cb()


class Transport(Protocol):
    async def get_json(self, endpoint: str, auth_key: str | None, token: CancelToken) -> JSONValue:
        ...


def auth_headers(auth_key: str | None) -> dict[str, str]:
    return {AUTH_HEADER: auth_key} if auth_key else {}


def resolve_endpoint(endpoint: str, base_url: str | None = None) -> str:
    if base_url and endpoint.startswith("/"):
        return base_url.rstrip("/") + endpoint
    return endpoint


def check_status(status: int) -> None:
    if 200 <= status < 300:
        return
    if status == 429:
        raise RateLimited(status)
    if status in (401, 403):
        raise Unauthorized(status)
    raise HttpError(status)


def read_json(response: requests.Response) -> JSONValue:
    check_status(response.status_code)
    try:
        return response.json()
    except ValueError as e:
        raise DecodeError(f"Response is not valid JSON: {e}") from e


def probe(endpoint: str, auth_key: str | None = None, timeout: float = DEFAULT_TIMEOUT) -> JSONValue:
    """One-off blocking fetch used while authoring a widget."""
    try:
        r = requests.get(endpoint, headers=auth_headers(auth_key), timeout=timeout)
    except requests.RequestException as e:
        raise NetworkError(str(e)) from e
    return read_json(r)


class RequestsTransport:
    """Runs each GET on a worker thread with its own session.

    Cancelling the token closes that session. Whether the in-flight socket
    actually aborts is up to urllib3; callers must not rely on it.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session_factory: Callable[[], requests.Session] = requests.Session):
        self.timeout = timeout
        self._session_factory = session_factory

    async def get_json(self, endpoint: str, auth_key: str | None, token: CancelToken) -> JSONValue:
        return await asyncio.to_thread(self._get_json, endpoint, auth_key, token)

    def _get_json(self, endpoint: str, auth_key: str | None, token: CancelToken) -> JSONValue:
        if token.cancelled:
            raise NetworkError("Request cancelled")
        with self._session_factory() as session:
            token.on_cancel(session.close)
            try:
                r = session.get(endpoint, headers=auth_headers(auth_key), timeout=self.timeout)
            except requests.RequestException as e:
                raise NetworkError(str(e)) from e
            logger.debug(f"GET {endpoint} -> {r.status_code}")
            return read_json(r)
