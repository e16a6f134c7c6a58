"""
Observability Module for the order feed

Provides structured logging with correlation IDs (feed query, shop,
project, order).
"""

from core.observability.logging import (
    configure_logging,
    get_logger,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "CorrelationContext",
    "with_correlation",
]
