"""HTTP client construction for the job-board backends.

Clients are built here with pool limits and granular timeouts taken from
settings, then owned by whichever ClientFactory or ApiClient created them.
"""

from typing import Any, Dict, Optional

import httpx

from jobboard.app.core.config import settings


def build_timeout(**kwargs: Any) -> httpx.Timeout:
    """Build an httpx.Timeout from settings, with optional overrides.

    A single ``timeout`` value overrides all granular timeouts.
    """
    timeout_override = kwargs.get("timeout")
    if timeout_override is not None:
        return httpx.Timeout(timeout_override)
    return httpx.Timeout(
        connect=kwargs.get("connect_timeout", settings.httpx_connect_timeout),
        read=kwargs.get("read_timeout", settings.httpx_read_timeout),
        write=kwargs.get("write_timeout", settings.httpx_write_timeout),
        pool=kwargs.get("pool_timeout", settings.httpx_pool_timeout),
    )


def build_limits(**kwargs: Any) -> httpx.Limits:
    return httpx.Limits(
        max_connections=kwargs.get("max_connections", settings.httpx_max_connections),
        max_keepalive_connections=kwargs.get(
            "max_keepalive_connections", settings.httpx_max_keepalive_connections
        ),
        keepalive_expiry=kwargs.get("keepalive_expiry", settings.httpx_keepalive_expiry),
    )


def create_http_client(
    base_url: str = "",
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Create a new HTTP client with default settings.

    The returned client should be closed when done:
        async with create_http_client("https://api.example.com") as client:
            ...

    Args:
        base_url: Base URL every relative request path is joined to
        headers: Default headers sent with every request
        **kwargs: Override default settings. Can include:
            - timeout: Single timeout value (overrides all granular timeouts)
            - connect_timeout, read_timeout, write_timeout, pool_timeout
            - max_connections, max_keepalive_connections, keepalive_expiry
            - transport: Custom httpx transport (tests use httpx.MockTransport)

    Returns:
        A new httpx.AsyncClient instance.
    """
    config: Dict[str, Any] = {
        "base_url": base_url,
        "headers": headers or {},
        "timeout": build_timeout(**kwargs),
        "limits": build_limits(**kwargs),
        "follow_redirects": kwargs.get("follow_redirects", True),
    }
    if kwargs.get("transport") is not None:
        config["transport"] = kwargs["transport"]
    return httpx.AsyncClient(**config)
