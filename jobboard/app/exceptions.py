"""Custom exceptions for the job-board client."""

import json
from typing import Any, Mapping, Optional

import httpx


class JobBoardClientError(Exception):
    """Base class for client exceptions with an HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code.
    """
    status_code: int = 500

    def __init__(self, message: str = "Job board client error"):
        self.message = message
        super().__init__(message)


class HttpError(JobBoardClientError):
    """Raised when the backend answers with a non-2xx status.

    The decoded response body is kept so callers can inspect API error
    payloads; transport metadata stays available for logging.
    """

    def __init__(
        self,
        status_code: int,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers or {})
        self.method = method
        self.url = url
        target = f"{method} {url}" if method and url else "request"
        super().__init__(f"HTTP {status_code} for {target}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "HttpError":
        """Build the most specific HttpError subclass for a response."""
        status = response.status_code
        if status == 401:
            error_cls = UnauthorizedError
        elif status == 403:
            error_cls = ForbiddenError
        elif status == 429:
            error_cls = RateLimitedError
        elif status >= 500:
            error_cls = ServerError
        else:
            error_cls = HttpError

        try:
            request: Optional[httpx.Request] = response.request
        except RuntimeError:
            # Responses built by hand in tests carry no request
            request = None
        return error_cls(
            status_code=status,
            body=decode_body(response),
            headers=response.headers,
            method=request.method if request is not None else None,
            url=str(request.url) if request is not None else None,
        )


class UnauthorizedError(HttpError):
    """HTTP 401. Stored credentials have been cleared when this is raised."""


class ForbiddenError(HttpError):
    """HTTP 403, usually a missing API subscription."""


class RateLimitedError(HttpError):
    """HTTP 429 that persisted after the allowed retry."""


class ServerError(HttpError):
    """HTTP 5xx from the backend."""


def decode_body(response: httpx.Response) -> Any:
    """Decode a response payload: JSON when possible, else text, None if empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text
