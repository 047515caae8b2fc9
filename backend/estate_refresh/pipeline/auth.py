"""Trigger authentication against the trusted-source marker header."""

from collections.abc import Mapping
from enum import Enum

from .exceptions import ConfigurationError


class AuthDecision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class TriggerAuthenticator:
    """Allows a trigger only when the marker header equals the expected value exactly.

    Header names are matched case-insensitively, as HTTP header names are.
    Values are compared verbatim.
    """

    def __init__(self, header: str = "x-vercel-cron", expected_value: str = "true"):
        if not header or not expected_value:
            raise ConfigurationError("Trigger header and expected value must be non-empty")
        self.header = header.lower()
        self.expected_value = expected_value

    def authenticate(self, headers: Mapping[str, str]) -> AuthDecision:
        for key, value in headers.items():
            if key.lower() == self.header:
                return AuthDecision.ALLOW if value == self.expected_value else AuthDecision.DENY
        return AuthDecision.DENY

    def marker(self) -> dict[str, str]:
        """Header bag that passes authentication, for trusted in-process triggers."""
        return {self.header: self.expected_value}
