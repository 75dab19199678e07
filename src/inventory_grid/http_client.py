from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any, Mapping

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .exceptions import TransportError, map_error
from .logger import get_logger, log_action

TRACE_HEADER = "X-Trace-ID"
_TRACE_HEADER_ALIASES = (TRACE_HEADER, "X-Trace-Id", "x-trace-id")
_IDEMPOTENT_METHODS = frozenset({"GET", "HEAD"})

logger = get_logger(__name__)

JsonPayload = dict[str, Any] | list[Any] | None


@dataclass
class LastOperation:
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class HttpClient:
    """Thin ``requests`` transport for the product API.

    Reads are retried on 5xx and connection errors with exponential backoff;
    mutations are sent once unless ``retry_mutation`` is set. Every call
    carries an ``X-Trace-ID`` header and the id echoed by the server wins.
    """

    config: ClientConfig
    session: requests.Session | None = None
    trace_id: str | None = None
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.session is not None:
            return
        pool = HTTPAdapter(pool_connections=self.config.max_connections, pool_maxsize=self.config.max_connections)
        self.session = requests.Session()
        for prefix in ("http://", "https://"):
            self.session.mount(prefix, pool)

    def url_for(self, path: str) -> str:
        return f"{self.config.api_base_url.rstrip('/')}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        retry_mutation: bool = False,
        operation: str = "unknown",
    ) -> JsonPayload:
        verb = method.upper()
        trace_id = self.trace_id or str(uuid.uuid4())
        outgoing = {"Accept": "application/json", **(headers or {}), TRACE_HEADER: trace_id}
        max_attempts = 1 + self.config.retries if (verb in _IDEMPOTENT_METHODS or retry_mutation) else 1

        started = time.monotonic()
        try:
            response = self._send(
                max_attempts,
                method=verb,
                url=self.url_for(path),
                headers=outgoing,
                json=json_body,
                params=params,
            )
        except requests.RequestException as exc:
            self._record(operation, started, "error", trace_id)
            raise TransportError(
                code="TRANSPORT_ERROR",
                message=str(exc),
                details={"type": type(exc).__name__},
                trace_id=trace_id,
                status_code=0,
            ) from exc

        trace_id = _trace_from_headers(response.headers) or trace_id
        if not response.ok:
            self._record(operation, started, "error", trace_id)
            raise map_error(response.status_code, _error_body(response), trace_id)
        self._record(operation, started, "success", trace_id)
        return response.json() if response.content else None

    def _send(self, max_attempts: int, **kwargs: Any) -> requests.Response:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        timeout = (self.config.connect_timeout_seconds, self.config.read_timeout_seconds)
        attempt = 0
        while True:
            last_try = attempt + 1 >= max_attempts
            try:
                response = self.session.request(timeout=timeout, verify=self.config.verify_ssl, **kwargs)
            except requests.RequestException:
                if last_try:
                    raise
            else:
                if last_try or response.status_code < 500:
                    return response
            time.sleep(self.config.retry_backoff_seconds * 2**attempt)
            attempt += 1

    def _record(self, operation: str, started: float, result: str, trace_id: str | None) -> None:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        self.last_operation = LastOperation(operation, elapsed_ms, result, trace_id)
        log_action(
            logger,
            module="http",
            action=operation,
            trace_id=trace_id,
            outcome=result,
            duration_ms=elapsed_ms,
        )


def _error_body(response: requests.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"message": response.text}
    return body if isinstance(body, dict) else {"details": body}


def _trace_from_headers(headers: Mapping[str, str]) -> str | None:
    return next((headers[key] for key in _TRACE_HEADER_ALIASES if headers.get(key)), None)
