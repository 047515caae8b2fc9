"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire
from fastapi import FastAPI

from estate_refresh import __version__
from estate_refresh.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings, app: FastAPI | None = None) -> None:
    """
    Initialize Logfire for the refresh service.

    Must be called once at startup, before the first pipeline run.

    Instruments:
    - the trigger API (when an app is given)
    - Python logging, so forwarded sync/build tool output reaches Logfire

    Without a token, spans stay local and nothing is exported.
    """
    if not settings.logfire_token:
        logfire.configure(send_to_logfire=False, console=False)
        logger.warning("Logfire token not set - observability disabled")
        return

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="estate-refresh",
            service_version=__version__,
            environment=settings.hugo_env,
        )

        if app is not None:
            logfire.instrument_fastapi(app)

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("✓ Logfire cloud tracking initialized")

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
