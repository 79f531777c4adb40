import logging

import pytest
from pydantic import ValidationError

from backend.core.observability import init_logging
from backend.core.observability import init_sentry
from backend.settings import Settings


@pytest.fixture
def sentry_calls(monkeypatch) -> list[dict[str, object]]:
    calls: list[dict[str, object]] = []

    def fake_init(**kwargs):
        calls.append(kwargs)

    monkeypatch.setattr("backend.core.observability.sentry_sdk.init", fake_init)
    return calls


def test_init_sentry_skips_when_dsn_missing(sentry_calls) -> None:
    init_sentry(Settings(sentry_dsn=None))

    assert sentry_calls == []


def test_init_sentry_passes_runtime_settings(sentry_calls) -> None:
    settings = Settings(
        sentry_dsn="https://examplePublicKey@o0.ingest.sentry.io/0",
        environment="staging",
        release="badge-1.2.0",
        sentry_traces_sample_rate=0.5,
    )

    init_sentry(settings)

    assert sentry_calls == [
        {
            "dsn": "https://examplePublicKey@o0.ingest.sentry.io/0",
            "environment": "staging",
            "release": "badge-1.2.0",
            "traces_sample_rate": 0.5,
            "send_default_pii": False,
        }
    ]


def test_init_logging_uses_configured_level(monkeypatch) -> None:
    calls: list[dict[str, object]] = []
    monkeypatch.setattr(
        "backend.core.observability.logging.basicConfig",
        lambda **kwargs: calls.append(kwargs),
    )

    init_logging(Settings(log_level="debug"))

    assert calls[0]["level"] == "DEBUG"


def test_settings_read_badge_options_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("CONTRIBUTIONS_API_URL", "https://api.example.com")
    monkeypatch.setenv("CACHE_MAX_AGE", "60")

    settings = Settings()

    assert settings.contributions_api_url == "https://api.example.com"
    assert settings.cache_max_age == 60
    assert logging.getLevelName(settings.log_level) == logging.INFO


def test_settings_reject_unknown_timezone() -> None:
    with pytest.raises(ValidationError):
        Settings(timezone="Mars/Olympus_Mons")


def test_settings_accept_iana_timezone(monkeypatch) -> None:
    monkeypatch.setenv("TIMEZONE", "Europe/Warsaw")

    assert Settings().timezone == "Europe/Warsaw"
