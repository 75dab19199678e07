from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"

    @property
    def kind(self) -> str:
        return error_kind(self.status_code)


class UnauthorizedError(ApiError):
    """Session token missing, expired or rejected."""


class ForbiddenError(ApiError):
    """The session cannot act on the selected store."""


class NotFoundError(ApiError):
    """Product or variant no longer exists on the remote store."""


class ValidationError(ApiError):
    pass


class ConflictError(ApiError):
    pass


class RateLimitError(ApiError):
    pass


class ServerError(ApiError):
    pass


class TransportError(ApiError):
    """Network failure before an HTTP response was returned."""


_STATUS_ERRORS: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}


def error_kind(status_code: int | None) -> str:
    status = int(status_code or 0)
    if status <= 0:
        return "network"
    if status in {401, 403}:
        return "auth"
    if status in {400, 404, 422}:
        return "validation"
    if status == 409:
        return "conflict"
    return "internal"


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    body = payload or {}
    # the product API reports failures as {"message": ...} or {"error": ...}
    message = body.get("message") or body.get("error") or "Request failed"
    body_trace = body.get("trace_id")
    if status_code >= 500:
        error_type: type[ApiError] = ServerError
    else:
        error_type = _STATUS_ERRORS.get(status_code, ApiError)
    return error_type(
        code=str(body.get("code") or "HTTP_ERROR"),
        message=str(message),
        details=body.get("details"),
        trace_id=str(body_trace) if body_trace is not None else trace_id,
        status_code=status_code,
        raw_payload=dict(body),
    )
