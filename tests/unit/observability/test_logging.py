"""Tests for observability/logging.py."""

from __future__ import annotations

import io
import json
import logging
from types import SimpleNamespace

import pytest
import structlog
from structlog.contextvars import get_contextvars

from ticket_tagger_app.observability.logging import (
    _resolve_level,
    bind_delivery_context,
    clear_delivery_context,
    configure_logging,
)


def _make_settings(**overrides: object) -> object:
    """Create a minimal settings object."""
    defaults: dict[str, object] = {"log_format": "console", "log_level": "INFO"}
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_configure_logging_console_mode(self) -> None:
        """Console mode configures without error."""
        configure_logging(_make_settings(log_format="console"))  # type: ignore[arg-type]
        assert structlog.get_logger() is not None

    def test_configure_logging_json_mode(self) -> None:
        """JSON mode renders stdlib records as JSON lines."""
        configure_logging(_make_settings(log_format="json"))  # type: ignore[arg-type]

        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.getLogger().handlers[0].formatter)
        stdlib_logger = logging.getLogger("test_json_mode")
        stdlib_logger.addHandler(handler)
        try:
            stdlib_logger.warning("delivery_received")
        finally:
            stdlib_logger.removeHandler(handler)

        line = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert line["event"] == "delivery_received"
        assert line["level"] == "warning"

    def test_configure_logging_sets_level(self) -> None:
        """Log level is applied to root logger."""
        configure_logging(_make_settings(log_level="WARNING"))  # type: ignore[arg-type]
        assert logging.getLogger().level == logging.WARNING

    def test_noisy_loggers_are_quieted(self) -> None:
        configure_logging(_make_settings(log_level="DEBUG"))  # type: ignore[arg-type]
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_single_root_handler(self) -> None:
        configure_logging(_make_settings())  # type: ignore[arg-type]
        configure_logging(_make_settings())  # type: ignore[arg-type]
        assert len(logging.getLogger().handlers) == 1


@pytest.mark.unit
class TestDeliveryContext:
    """Tests for bind/clear delivery context."""

    def test_bind_and_clear(self) -> None:
        bind_delivery_context("72d3162e", "issues")
        assert get_contextvars() == {"delivery_id": "72d3162e", "event": "issues"}
        clear_delivery_context()
        assert get_contextvars() == {}


@pytest.mark.unit
class TestResolveLevel:
    """Tests for _resolve_level."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("CRITICAL", logging.CRITICAL),
            ("debug", logging.DEBUG),
            ("unknown", logging.INFO),
        ],
    )
    def test_resolve_level(self, name: str, expected: int) -> None:
        """Level names resolve to correct logging constants."""
        assert _resolve_level(name) == expected
