"""
Custom logging filters and configuration.

Provides logging utilities for tagging records with the contact being
processed and configuring application-wide logging behavior.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [contact=%(contact_id)s] %(message)s"


class ContactContextFilter(logging.Filter):
    """Ensure every record carries a ``contact_id`` attribute."""

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Default the contact id so the shared format never fails.

        Callers attach the id with ``extra={"contact_id": ...}``; records
        emitted without one are tagged with "-".

        Args:
            record: The log record to filter

        Returns:
            Always True, the record is only annotated
        """
        if not hasattr(record, "contact_id"):
            record.contact_id = "-"
        return True


def configure_logging(level: str | int = logging.INFO) -> None:
    """
    Configure root logging for a process entry point.

    Args:
        level: Log level name or number
    """
    handler = logging.StreamHandler()
    handler.addFilter(ContactContextFilter())
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[handler],
    )
