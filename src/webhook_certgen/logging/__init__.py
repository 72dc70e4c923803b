"""Logging configuration for webhook_certgen."""

from webhook_certgen.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
