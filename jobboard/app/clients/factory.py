"""Client factory for the job-board backends.

The factory is the composition root: it owns the shared HTTP connection
pool and builds one ApiClient per backend, each with its own rate limiter.
"""

from enum import Enum
from typing import Dict, Optional

import httpx

from jobboard.app.clients.base import ApiClient
from jobboard.app.clients.credentials import CredentialStore, InMemoryCredentialStore
from jobboard.app.clients.rate_limiter import RateLimiter
from jobboard.app.clients.retry import RateLimitRetryPolicy
from jobboard.app.core.config import Settings, settings as default_settings
from jobboard.app.core.http_client import create_http_client
from jobboard.app.core.logging import get_logger

logger = get_logger(__name__)


class ClientType(str, Enum):
    """Supported backends."""
    RAPIDAPI = "rapidapi"
    SMARTRECRUITERS = "smartrecruiters"


class ClientConfig:
    """Configuration for a single backend client.

    Attributes:
        client_type: The backend this config targets
        base_url: The API base URL
        timeout: Request timeout in seconds
        headers: Static headers sent with every request
        max_requests: Rate limiter quota per window
        per_seconds: Rate limiter window in seconds
        attach_bearer: Whether stored access tokens are sent
        clear_credentials_on_unauthorized: Whether a 401 clears stored tokens
        log_requests: Whether requests and responses are logged
        max_retries: 429 retries per request
        retry_delay_ms: 429 delay when Retry-After is missing
        company_id: SmartRecruiters company whose postings are listed
    """

    def __init__(
        self,
        client_type: ClientType,
        base_url: str,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        max_requests: int = 10,
        per_seconds: int = 1,
        attach_bearer: bool = True,
        clear_credentials_on_unauthorized: bool = True,
        log_requests: bool = False,
        max_retries: int = 1,
        retry_delay_ms: int = 5000,
        company_id: Optional[str] = None,
    ):
        self.client_type = client_type
        self.base_url = base_url
        self.timeout = timeout
        self.headers = dict(headers or {})
        self.max_requests = max_requests
        self.per_seconds = per_seconds
        self.attach_bearer = attach_bearer
        self.clear_credentials_on_unauthorized = clear_credentials_on_unauthorized
        self.log_requests = log_requests
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self.company_id = company_id

    @classmethod
    def from_settings(
        cls, client_type: ClientType, settings: Optional[Settings] = None
    ) -> "ClientConfig":
        """Create a ClientConfig for ``client_type`` from settings.

        RapidAPI authenticates with its key/host headers plus the user's
        bearer token. SmartRecruiters' public posting API needs no user
        token; a Smart Token header is only sent when a key is configured.
        """
        s = settings or default_settings

        if client_type == ClientType.RAPIDAPI:
            return cls(
                client_type=client_type,
                base_url=s.api_base_url,
                timeout=s.api_timeout,
                headers={
                    "X-RapidAPI-Key": s.api_key,
                    "X-RapidAPI-Host": s.api_host,
                },
                max_requests=s.rate_limit_max_requests,
                per_seconds=s.rate_limit_per_seconds,
                attach_bearer=True,
                clear_credentials_on_unauthorized=True,
                log_requests=s.enable_api_logs,
                max_retries=s.rate_limit_max_retries,
                retry_delay_ms=s.rate_limit_retry_delay_ms,
            )

        if client_type == ClientType.SMARTRECRUITERS:
            headers = {}
            if s.smartrecruiters_api_key:
                headers["X-SmartToken"] = s.smartrecruiters_api_key
            return cls(
                client_type=client_type,
                base_url=s.smartrecruiters_base_url,
                timeout=s.smartrecruiters_timeout,
                headers=headers,
                max_requests=s.smartrecruiters_max_requests_per_second,
                per_seconds=1,
                attach_bearer=False,
                clear_credentials_on_unauthorized=False,
                log_requests=s.enable_smartrecruiters_logs,
                max_retries=s.rate_limit_max_retries,
                retry_delay_ms=s.rate_limit_retry_delay_ms,
                company_id=s.smartrecruiters_company_id,
            )

        raise ValueError(f"Unknown client type: {client_type}")

    def postings_path(self, posting_id: Optional[str] = None) -> str:
        """Path of the company's job postings, or of a single posting.

        Example:
            >>> config = ClientConfig(ClientType.SMARTRECRUITERS, "", company_id="acme")
            >>> config.postings_path()
            '/v1/companies/acme/postings'
        """
        if not self.company_id:
            raise ValueError(f"{self.client_type.value} config has no company_id")
        path = f"/v1/companies/{self.company_id}/postings"
        if posting_id is not None:
            path = f"{path}/{posting_id}"
        return path


class ClientFactory:
    """Factory for creating backend clients.

    Usage:
        async with ClientFactory(credentials=store) as factory:
            jobs = await factory.get_client(ClientType.RAPIDAPI).get("/jobs/")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        credentials: Optional[CredentialStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client factory.

        Args:
            settings: Settings to read backend configs from
            credentials: Token store shared by every client
            http_client: Optional shared HTTP client; one is created on
                first use and closed by ``aclose()`` otherwise
        """
        self.settings = settings or default_settings
        self.credentials = credentials if credentials is not None else InMemoryCredentialStore()
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._clients: Dict[ClientType, ApiClient] = {}

    def get_config(self, client_type: ClientType) -> ClientConfig:
        return ClientConfig.from_settings(client_type, self.settings)

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = create_http_client()
        return self._http_client

    def create_client(
        self,
        client_type: ClientType,
        config: Optional[ClientConfig] = None,
    ) -> ApiClient:
        """Create a new client with its own rate limiter.

        Args:
            client_type: Backend to create a client for
            config: Optional config override

        Returns:
            An ApiClient sharing this factory's connection pool
        """
        config = config or self.get_config(client_type)
        limiter = RateLimiter.per_seconds(
            max_requests=config.max_requests, seconds=config.per_seconds
        )
        logger.debug(
            f"Creating {client_type.value} client for {config.base_url} "
            f"({config.max_requests} requests/{config.per_seconds}s)"
        )
        return ApiClient(
            base_url=config.base_url,
            rate_limiter=limiter,
            credentials=self.credentials,
            http_client=self._get_http_client(),
            default_headers=config.headers,
            timeout=config.timeout,
            retry_policy=RateLimitRetryPolicy(
                max_retries=config.max_retries,
                default_delay_ms=config.retry_delay_ms,
            ),
            attach_bearer=config.attach_bearer,
            clear_credentials_on_unauthorized=config.clear_credentials_on_unauthorized,
            log_requests=config.log_requests,
            name=client_type.value,
        )

    def get_client(self, client_type: ClientType) -> ApiClient:
        """Get the cached client for ``client_type``, creating it on first use."""
        if client_type not in self._clients:
            self._clients[client_type] = self.create_client(client_type)
        return self._clients[client_type]

    async def aclose(self) -> None:
        """Drop cached clients and close the connection pool if owned."""
        self._clients.clear()
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "ClientFactory":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
