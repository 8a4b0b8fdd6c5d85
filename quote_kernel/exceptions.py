"""
Typed Exception Hierarchy for the Quote Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every call site that prices a quote (customer wizard, staff order edit,
server-side recalculation) must react to the same failure the same way.
Matching on message text drifts between call sites; matching on type does
not. Every exception therefore:
  1. Has its own class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (not just a message string)

Example:
    try:
        region = resolve_tax(billing_province, tax_rows)
    except RegionNotFoundError as e:
        # Fallback is caller policy, never engine behaviour
        region = default_region_for(e.region_code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    QuoteKernelError (base)
    |
    +-- InvalidArgumentError
    |
    +-- LookupFailedError
    |   +-- RegionNotFoundError
    |       +-- SameDayEligibilityNotFoundError
    |
    +-- TurnaroundError
        +-- IneligibleTurnaroundSelectionError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                            | When Raised
--------------------------------|---------------------------------------------
INVALID_ARGUMENT                | Malformed input or configuration: negative
                                | word count or day count, zero words per
                                | page, non-finite rate, naive datetime.
REGION_NOT_FOUND                | No tax row matches the billing region.
SAME_DAY_ELIGIBILITY_NOT_FOUND  | No same-day row for the language pair,
                                | document type and intended use.
INELIGIBLE_TURNAROUND_SELECTION | Fee/date requested for a tier whose gate
                                | (cutoff, notarization, same-day match) is
                                | not met. Never downgraded silently.

None of these are retried: the engine is pure arithmetic over a snapshot
the caller already fetched.
"""

from __future__ import annotations

from typing import Any, Sequence


class QuoteKernelError(Exception):
    """
    Base exception for all quote kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "QUOTE_KERNEL_ERROR"


class InvalidArgumentError(QuoteKernelError):
    """Malformed input or configuration. Always a caller error."""

    code: str = "INVALID_ARGUMENT"

    def __init__(self, argument: str, reason: str, value: Any = None):
        self.argument = argument
        self.reason = reason
        self.value = value
        super().__init__(f"Invalid {argument}: {reason}")


# Lookup-related exceptions


class LookupFailedError(QuoteKernelError):
    """Base exception for lookups against caller-supplied reference tables."""

    code: str = "LOOKUP_FAILED"


class RegionNotFoundError(LookupFailedError):
    """No tax (or eligibility) row matches the requested region."""

    code: str = "REGION_NOT_FOUND"

    def __init__(self, region_code: str, message: str | None = None):
        self.region_code = region_code
        super().__init__(message or f"No tax rates found for region {region_code!r}")


class SameDayEligibilityNotFoundError(RegionNotFoundError):
    """No active same-day row covers every document type in the order."""

    code: str = "SAME_DAY_ELIGIBILITY_NOT_FOUND"

    def __init__(
        self,
        source_language: str,
        target_language: str,
        intended_use: str,
        missing_document_types: Sequence[str],
    ):
        self.source_language = source_language
        self.target_language = target_language
        self.intended_use = intended_use
        self.missing_document_types = tuple(missing_document_types)
        super().__init__(
            f"{source_language}->{target_language}",
            f"Same-day not offered for {source_language}->{target_language} "
            f"({intended_use}) document types: "
            f"{', '.join(self.missing_document_types)}",
        )


# Turnaround-related exceptions


class TurnaroundError(QuoteKernelError):
    """Base exception for turnaround selection errors."""

    code: str = "TURNAROUND_ERROR"


class IneligibleTurnaroundSelectionError(TurnaroundError):
    """The selected tier's eligibility gate is not met."""

    code: str = "INELIGIBLE_TURNAROUND_SELECTION"

    def __init__(self, tier_code: str, reasons: Sequence[str]):
        self.tier_code = tier_code
        self.reasons = tuple(reasons)
        detail = ", ".join(self.reasons) if self.reasons else "unknown tier"
        super().__init__(f"Turnaround tier {tier_code!r} is not available: {detail}")
