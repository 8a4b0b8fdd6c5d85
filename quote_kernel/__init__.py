"""
Quote Kernel - shared primitives for translation quote pricing.

Provides the pieces every pricing engine and call site builds on:
- Money / Currency value objects with Decimal-only arithmetic
- An injectable Clock so engines never read the wall clock
- A typed exception hierarchy with machine-readable codes
- Structured JSON logging with request-scoped context
"""

__version__ = "0.1.0"
