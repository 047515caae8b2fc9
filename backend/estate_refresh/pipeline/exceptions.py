"""Refresh pipeline exceptions."""


class RefreshError(Exception):
    """Base refresh pipeline exception."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(RefreshError):
    """Trigger did not carry the trusted-source marker."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


class SyncStageError(RefreshError):
    """Listing sync failed. Non-fatal."""

    pass


class BuildStageError(RefreshError):
    """Site build failed. Fatal."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500)


class ConfigurationError(RefreshError):
    """Settings or per-run overrides are invalid."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500)
