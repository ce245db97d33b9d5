"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire
from fastapi import FastAPI

from scrutinio import __version__
from scrutinio.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings, app: FastAPI | None = None) -> bool:
    """
    Initialize Logfire and bridge Python logging to it.

    Must be called once at startup, before the app serves requests.

    This function configures Logfire cloud tracking and instruments:
    - Python logging (bridges to Logfire)
    - the FastAPI app, when one is given

    Args:
        settings: Application settings containing the Logfire token
        app: Optional FastAPI app to instrument

    Returns:
        True if Logfire was configured, False if it stayed disabled.
    """
    if not settings.logfire_token:
        logger.info("Logfire token not set - observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="scrutinio",
            service_version=__version__,
            environment=settings.environment,
        )

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        if app is not None:
            logfire.instrument_fastapi(app)

        logger.info("Logfire cloud tracking initialized")
        return True

    except Exception as e:
        # Observability is optional; keep serving without it.
        logger.warning(f"Failed to initialize Logfire: {e}")
        return False
