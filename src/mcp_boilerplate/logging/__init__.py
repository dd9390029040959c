"""Structured logging utilities."""

from .audit import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from .console import JsonFormatter, configure_logging

__all__ = [
    "AuditEvent",
    "JsonFormatter",
    "JsonlAuditLogger",
    "configure_logging",
    "sanitize_arguments",
    "utc_timestamp",
]
