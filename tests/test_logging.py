"""Tests for logging filters and configuration."""

from __future__ import annotations

import logging
from unittest.mock import patch

from profilegraph.core.logging import LOG_FORMAT, ContactContextFilter, configure_logging


def make_record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord("profilegraph.test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContactContextFilter:
    """Tests for ContactContextFilter."""

    def test_defaults_contact_id(self) -> None:
        record = make_record()
        assert ContactContextFilter().filter(record) is True
        assert record.contact_id == "-"  # type: ignore[attr-defined]

    def test_keeps_existing_contact_id(self) -> None:
        record = make_record(contact_id=42)
        ContactContextFilter().filter(record)
        assert record.contact_id == 42  # type: ignore[attr-defined]

    def test_format_renders(self) -> None:
        """The shared format works for records with and without a contact."""
        formatter = logging.Formatter(LOG_FORMAT)
        for record in (make_record(), make_record(contact_id=7)):
            ContactContextFilter().filter(record)
            assert "hello" in formatter.format(record)
        assert "[contact=7]" in formatter.format(record)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_installs_filtered_handler(self) -> None:
        with patch("profilegraph.core.logging.logging.basicConfig") as basic_config:
            configure_logging("DEBUG")

        kwargs = basic_config.call_args.kwargs
        assert kwargs["level"] == "DEBUG"
        assert kwargs["format"] == LOG_FORMAT
        [handler] = kwargs["handlers"]
        assert any(isinstance(f, ContactContextFilter) for f in handler.filters)
