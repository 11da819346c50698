import pytest
from pydantic import ValidationError

from jobboard.app.core.config import Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.rate_limit_max_requests == 10
    assert settings.rate_limit_per_seconds == 1
    assert settings.rate_limit_retry_delay_ms == 5000
    assert settings.rate_limit_max_retries == 1
    assert settings.api_base_url == "https://job-board-api.p.rapidapi.com/api/v1"
    assert settings.enable_api_logs is False
    assert settings.smartrecruiters_company_id == "smartrecruiters"


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_KEY", "rapid-key")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "25")
    monkeypatch.setenv("ENABLE_API_LOGS", "true")
    monkeypatch.setenv("LOG_FORMAT", " JSON ")

    settings = Settings(_env_file=None)

    assert settings.api_key == "rapid-key"
    assert settings.rate_limit_max_requests == 25
    assert settings.enable_api_logs is True
    assert settings.log_format == "json"


@pytest.mark.parametrize(
    "env",
    [
        {"RATE_LIMIT_MAX_REQUESTS": "0"},
        {"RATE_LIMIT_PER_SECONDS": "-1"},
        {"RATE_LIMIT_RETRY_DELAY_MS": "-5"},
        {"API_TIMEOUT": "0"},
        {"LOG_FORMAT": "xml"},
    ],
)
def test_rejects_invalid_values(monkeypatch, env: dict[str, str]) -> None:
    for key, value in env.items():
        monkeypatch.setenv(key, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
