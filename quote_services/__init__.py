"""
quote_services -- orchestration over the pricing engines.

Call sites price quotes through ``QuotePricingService``; it is the only
component that reads the clock.
"""

from quote_services.quote_service import (
    QuoteOutcome,
    QuotePricingService,
    QuoteRequest,
    ReferenceSnapshot,
)

__all__ = [
    "QuoteOutcome",
    "QuotePricingService",
    "QuoteRequest",
    "ReferenceSnapshot",
]
