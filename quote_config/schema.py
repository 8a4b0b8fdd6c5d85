"""
PricingRegime schema.

The typed, frozen form of one pricing regime: every rate, multiplier,
tier, day rule, cutoff and delivery option a quote is priced with. YAML
regimes are parsed into this type by the loader; engines receive its
parts, never the regime itself.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from quote_engines.delivery import DeliveryOption
from quote_engines.line_item import LineItemPricing
from quote_engines.turnaround import CutoffWindow, TurnaroundDaySchedule, TurnaroundTierSet
from quote_kernel.domain.values import Currency


@dataclass(frozen=True)
class LanguageMultipliers:
    """Per-source-language price multiplier, assigned through language tiers."""

    tier_multipliers: tuple[tuple[int, Decimal], ...]
    language_tiers: tuple[tuple[str, int], ...] = ()
    default_multiplier: Decimal = Decimal("1.0")

    def for_language(self, source_language: str) -> Decimal:
        wanted = source_language.strip().lower()
        tier = next((t for code, t in self.language_tiers if code == wanted), None)
        if tier is None:
            return self.default_multiplier
        return next(
            (m for candidate, m in self.tier_multipliers if candidate == tier),
            self.default_multiplier,
        )


@dataclass(frozen=True)
class PricingRegime:
    """One named bundle of pricing configuration."""

    name: str
    version: int
    currency: Currency
    line_items: LineItemPricing
    tiers: TurnaroundTierSet
    schedule: TurnaroundDaySchedule
    time_zone: str
    daily_cutoff: CutoffWindow
    rush_cutoff: CutoffWindow
    same_day_cutoff: CutoffWindow
    delivery_options: tuple[DeliveryOption, ...]
    languages: LanguageMultipliers
    checksum: str = ""

    def language_multiplier(
        self,
        source_language: str,
        override: Decimal | None = None,
    ) -> Decimal:
        """Staff ``override`` wins; otherwise the source language's tier multiplier."""
        if override is not None:
            return override
        return self.languages.for_language(source_language)

    def pricing_for(
        self,
        source_language: str,
        override: Decimal | None = None,
    ) -> LineItemPricing:
        return self.line_items.with_language_multiplier(
            self.language_multiplier(source_language, override)
        )

    def with_checksum(self, checksum: str) -> PricingRegime:
        return replace(self, checksum=checksum)
