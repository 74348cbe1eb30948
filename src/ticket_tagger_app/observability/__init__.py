"""Observability: structured logging."""

from ticket_tagger_app.observability.logging import (
    bind_delivery_context,
    clear_delivery_context,
    configure_logging,
)

__all__ = [
    "bind_delivery_context",
    "clear_delivery_context",
    "configure_logging",
]
