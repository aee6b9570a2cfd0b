"""
Logfire setup for CreatorLens.

The services log through the standard library. When a Logfire write token is
present, setup_logfire() attaches a LogfireLoggingHandler to the root logger
so those records (and pydantic validation traces) reach Logfire. Without a
token nothing changes and logs stay local.

Environment Variables:
    LOGFIRE_TOKEN: Logfire write token; setup is skipped when unset
    LOGFIRE_SERVICE_NAME: Service name reported to Logfire (default: creatorlens)
    LOGFIRE_ENVIRONMENT: development, staging or production
"""

import logging
import os
from typing import Optional

import logfire

logger = logging.getLogger(__name__)

_handler: Optional[logging.Handler] = None


def setup_logfire(environment: Optional[str] = None, service_name: Optional[str] = None) -> bool:
    """
    Send standard-library logs to Logfire.

    Safe to call more than once; only the first successful call configures.

    Returns:
        True if Logfire is active, False when no token is configured or
        configuration failed
    """
    global _handler

    if _handler is not None:
        return True

    token = os.environ.get("LOGFIRE_TOKEN")
    if not token:
        logger.debug("LOGFIRE_TOKEN not set, logs stay local")
        return False

    service = service_name or os.environ.get("LOGFIRE_SERVICE_NAME", "creatorlens")
    env = environment or os.environ.get("LOGFIRE_ENVIRONMENT", "development")

    try:
        logfire.configure(
            token=token,
            service_name=service,
            environment=env,
            send_to_logfire=True,
            console=False,
        )
        logfire.instrument_pydantic()
    except Exception as e:
        logger.error(f"Failed to configure Logfire: {e}")
        return False

    _handler = logfire.LogfireLoggingHandler()
    logging.getLogger().addHandler(_handler)
    logger.info(f"Logfire configured: service={service}, environment={env}")
    return True


def is_logfire_configured() -> bool:
    return _handler is not None
