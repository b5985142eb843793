"""Logging for the booking service, driven by ``CABINBOOK_LOG_*`` settings."""

from __future__ import annotations

import logging
import sys

from cabinbook.config import Settings, get_settings

LOGGER_NAMESPACE = "cabinbook"

_configured = False


def configure_logging(settings: Settings | None = None, force: bool = False) -> None:
    """Attach one stream handler to the ``cabinbook`` logger.

    Only the package namespace is configured, so applications embedding the
    engine keep control of the root logger.
    """
    global _configured
    if _configured and not force:
        return

    settings = settings or get_settings()
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr if settings.log_to_stderr else sys.stdout)
    handler.setFormatter(logging.Formatter(settings.log_format))
    package_logger.addHandler(handler)
    package_logger.setLevel(settings.log_level.upper())
    package_logger.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    if name != LOGGER_NAMESPACE and not name.startswith(LOGGER_NAMESPACE + "."):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)
