"""Rate-limited HTTP client for the job-board backends.

Every call goes through the same pipeline:

    acquire() on the rate limiter -> attach bearer token -> send
        -> 429: wait Retry-After, send once more
        -> 401: clear stored tokens, raise
        -> 403 / 5xx: log, raise
        -> other non-2xx: raise

Callers get the decoded payload back; status and headers are only exposed
through HttpError.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx

from jobboard.app.clients.credentials import (
    ACCESS_TOKEN_KEY,
    CredentialStore,
    clear_tokens,
)
from jobboard.app.clients.rate_limiter import RateLimiter, RateLimiterStats
from jobboard.app.clients.retry import RateLimitRetryPolicy
from jobboard.app.core.http_client import create_http_client
from jobboard.app.core.logging import get_log_context, get_logger
from jobboard.app.exceptions import HttpError, decode_body

logger = get_logger(__name__)


class ApiClient:
    """Client for one REST backend.

    Accepts an external httpx.AsyncClient for connection pooling, or creates
    its own if not provided. Only a client created here is closed by
    ``aclose()``.
    """

    def __init__(
        self,
        base_url: str,
        rate_limiter: RateLimiter,
        credentials: Optional[CredentialStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        default_headers: Optional[Mapping[str, str]] = None,
        timeout: float = 30.0,
        retry_policy: Optional[RateLimitRetryPolicy] = None,
        attach_bearer: bool = True,
        clear_credentials_on_unauthorized: bool = True,
        log_requests: bool = False,
        name: str = "api",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the client.

        Args:
            base_url: The API base URL; request paths are appended to it
            rate_limiter: Limiter every request is admitted through
            credentials: Store holding the access/refresh tokens
            http_client: Optional shared HTTP client for connection pooling
            default_headers: Static headers sent with every request
            timeout: Request timeout in seconds for a self-created client
            retry_policy: Policy for 429 retries (one retry by default)
            attach_bearer: Send the stored access token as a bearer credential
            clear_credentials_on_unauthorized: Remove stored tokens on 401
            log_requests: Log every request and successful response
            name: Client name used in log records
            sleep: Coroutine used for Retry-After waits
        """
        self.base_url = base_url.rstrip("/")
        self.rate_limiter = rate_limiter
        self.credentials = credentials
        self.timeout = timeout
        self.retry_policy = retry_policy or RateLimitRetryPolicy()
        self.attach_bearer = attach_bearer
        self.clear_credentials_on_unauthorized = clear_credentials_on_unauthorized
        self.log_requests = log_requests
        self.name = name
        self.headers = self._build_headers(default_headers)

        self._sleep = sleep
        self._http_client = http_client
        self._owns_http_client = http_client is None

    def _build_headers(self, default_headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if default_headers:
            headers.update(default_headers)
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = create_http_client(timeout=self.timeout)
        return self._http_client

    def _build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        if not path:
            return self.base_url
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get_auth_token(self) -> Optional[str]:
        if not self.attach_bearer or self.credentials is None:
            return None
        return self.credentials.get(ACCESS_TOKEN_KEY) or None

    async def _send(
        self,
        method: str,
        url: str,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Admit one request through the limiter and send it."""
        await self.rate_limiter.acquire()

        request_headers = dict(self.headers)
        if headers:
            request_headers.update(headers)
        token = self._get_auth_token()
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

        context = get_log_context(client=self.name, method=method, url=url)
        if self.log_requests:
            logger.info(f"{self.name} request: {method} {url}", extra=context)

        start = time.perf_counter()
        try:
            response = await self._get_client().request(
                method,
                url,
                json=json,
                params=params,
                headers=request_headers,
                timeout=self.timeout,
            )
        except httpx.TransportError as e:
            logger.error(
                f"{self.name} request failed: {method} {url}: {type(e).__name__}: {e}",
                extra=context,
            )
            raise
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        if self.log_requests and response.is_success:
            logger.info(
                f"{self.name} response: {response.status_code} {url}",
                extra={**context, "status_code": response.status_code, "duration_ms": duration_ms},
            )
        return response

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send a request and return the decoded response payload.

        Args:
            method: HTTP method
            path: Path relative to base_url, or an absolute URL
            json: JSON request body
            params: Query parameters; None values are dropped
            headers: Extra headers for this request only

        Returns:
            Decoded JSON payload, the response text for non-JSON bodies,
            or None for an empty body

        Raises:
            HttpError: On a non-2xx response (subclass chosen by status)
            httpx.TransportError: On network failures and timeouts
        """
        method = method.upper()
        url = self._build_url(path)
        if params is not None:
            params = {k: v for k, v in params.items() if v is not None}

        attempt = 0
        while True:
            response = await self._send(method, url, json=json, params=params, headers=headers)
            if response.is_success:
                return decode_body(response)

            if self.retry_policy.should_retry(response.status_code, attempt):
                delay_ms = self.retry_policy.delay_ms_for(response)
                logger.warning(
                    f"{self.name} rate limit exceeded, retrying after {delay_ms}ms",
                    extra=get_log_context(
                        client=self.name,
                        method=method,
                        url=url,
                        status_code=response.status_code,
                        retry_after_ms=delay_ms,
                    ),
                )
                await self._sleep(delay_ms / 1000.0)
                attempt += 1
                continue

            self._handle_error_status(response, method, url)
            raise HttpError.from_response(response)

    def _handle_error_status(self, response: httpx.Response, method: str, url: str) -> None:
        """Apply the side effects for a failed response before it is raised."""
        status = response.status_code
        context = get_log_context(client=self.name, method=method, url=url, status_code=status)

        if status == 429:
            logger.error(f"{self.name} rate limit exceeded after retry", extra=context)
        elif status == 401:
            logger.error(f"{self.name} authentication failed", extra=context)
            if self.clear_credentials_on_unauthorized and self.credentials is not None:
                clear_tokens(self.credentials)
        elif status == 403:
            logger.error(f"{self.name} access forbidden, subscription required", extra=context)
        elif status >= 500:
            logger.error(f"{self.name} server error: {status}", extra=context)

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("DELETE", path, params=params)

    def get_rate_limiter_stats(self) -> RateLimiterStats:
        return self.rate_limiter.get_stats()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
