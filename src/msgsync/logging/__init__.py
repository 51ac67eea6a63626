"""Structured logging utilities."""

from .audit import ExtractionEvent, JsonlAuditLogger, utc_timestamp
from .setup import configure_logging

__all__ = ["ExtractionEvent", "JsonlAuditLogger", "configure_logging", "utc_timestamp"]
