"""Tests for trigger authentication."""

import pytest

from estate_refresh.pipeline.auth import AuthDecision, TriggerAuthenticator
from estate_refresh.pipeline.exceptions import ConfigurationError


def test_allows_exact_marker() -> None:
    auth = TriggerAuthenticator(header="x-vercel-cron", expected_value="true")
    assert auth.authenticate({"x-vercel-cron": "true"}) is AuthDecision.ALLOW


def test_header_name_is_case_insensitive() -> None:
    auth = TriggerAuthenticator(header="X-Vercel-Cron", expected_value="true")
    assert auth.authenticate({"x-vercel-cron": "true"}) is AuthDecision.ALLOW
    assert auth.authenticate({"X-VERCEL-CRON": "true"}) is AuthDecision.ALLOW


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"x-vercel-cron": ""},
        {"x-vercel-cron": "TRUE"},
        {"x-vercel-cron": "True"},
        {"x-vercel-cron": "true "},
        {"x-vercel-cron": "truex"},
        {"x-vercel-cron": "tru"},
        {"x-vercel-cron-extra": "true"},
        {"authorization": "true"},
    ],
)
def test_denies_missing_or_inexact_marker(headers: dict[str, str]) -> None:
    auth = TriggerAuthenticator(header="x-vercel-cron", expected_value="true")
    assert auth.authenticate(headers) is AuthDecision.DENY


def test_marker_passes_authentication() -> None:
    auth = TriggerAuthenticator(header="X-Trigger", expected_value="s3cret")
    assert auth.marker() == {"x-trigger": "s3cret"}
    assert auth.authenticate(auth.marker()) is AuthDecision.ALLOW


def test_rejects_empty_expected_value() -> None:
    with pytest.raises(ConfigurationError):
        TriggerAuthenticator(header="x-vercel-cron", expected_value="")
