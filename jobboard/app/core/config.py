from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Job-board REST backend (RapidAPI gateway)
    api_base_url: str = "https://job-board-api.p.rapidapi.com/api/v1"
    api_host: str = "job-board-api.p.rapidapi.com"
    api_key: str = ""
    api_timeout: float = 30.0  # Seconds

    # SmartRecruiters public posting API
    smartrecruiters_base_url: str = "https://api.smartrecruiters.com"
    smartrecruiters_api_key: str = ""
    smartrecruiters_company_id: str = "smartrecruiters"
    smartrecruiters_timeout: float = 30.0
    smartrecruiters_max_requests_per_second: int = 10

    # Client-side rate limiting
    rate_limit_max_requests: int = 10
    rate_limit_per_seconds: int = 1
    rate_limit_retry_delay_ms: int = 5000  # Used when a 429 has no Retry-After
    rate_limit_max_retries: int = 1

    # HTTP Client connection pool settings
    httpx_connect_timeout: float = 10.0
    httpx_read_timeout: float = 30.0
    httpx_write_timeout: float = 10.0
    httpx_pool_timeout: float = 5.0
    httpx_keepalive_expiry: float = 30.0
    httpx_max_connections: int = 100
    httpx_max_keepalive_connections: int = 20

    # Request/response logging per backend
    enable_api_logs: bool = False
    enable_smartrecruiters_logs: bool = False

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator(
        "rate_limit_max_requests",
        "rate_limit_per_seconds",
        "smartrecruiters_max_requests_per_second",
    )
    @classmethod
    def validate_rate_limit_positive(cls, v: int) -> int:
        """Validate rate limit values are positive."""
        if v < 1:
            raise ValueError("Rate limit values must be at least 1")
        return v

    @field_validator("rate_limit_retry_delay_ms", "rate_limit_max_retries")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Retry settings must not be negative")
        return v

    @field_validator(
        "api_timeout",
        "smartrecruiters_timeout",
        "httpx_connect_timeout",
        "httpx_read_timeout",
    )
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
