"""
Regime Loader (``quote_config.loader``).

Responsibility
--------------
Loads a pricing-regime YAML file and parses it into the typed
``quote_config.schema.PricingRegime``. Runtime callers go through
``quote_config.get_pricing_regime()``; the parse helpers are public for
tests and tooling.

Invariants enforced
-------------------
* Required keys are read with ``data[...]``; no silent defaults for them.
* Every parsed object is a frozen dataclass that validates itself.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  regime so a priced quote can be tied to the exact configuration used.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unparseable numbers  -> ``ValueError``.
* Values the engines reject  -> ``InvalidArgumentError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from quote_config.schema import LanguageMultipliers, PricingRegime
from quote_engines.delivery import DeliveryOption
from quote_engines.line_item import ComplexityTable, LineItemPricing
from quote_engines.turnaround import (
    CutoffWindow,
    TurnaroundDayRule,
    TurnaroundDaySchedule,
    TurnaroundTier,
    TurnaroundTierSet,
)
from quote_kernel.domain.values import Currency, Money


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any) -> Decimal:
    """Parse a Decimal from a YAML scalar (quoted string, int or float)."""
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse decimal from {value!r}") from e


def parse_line_items(data: dict[str, Any], currency: Currency) -> LineItemPricing:
    return LineItemPricing(
        base_rate_per_page=Money.of(parse_decimal(data["base_rate_per_page"]), currency),
        words_per_page=int(data["words_per_page"]),
        rounding_unit=parse_decimal(data["rounding_unit"]),
        complexity=ComplexityTable.of(
            {tier: parse_decimal(value) for tier, value in data["complexity"].items()}
        ),
    )


def parse_languages(data: dict[str, Any]) -> LanguageMultipliers:
    return LanguageMultipliers(
        tier_multipliers=tuple(
            (int(tier), parse_decimal(value))
            for tier, value in sorted(data.get("tier_multipliers", {}).items())
        ),
        language_tiers=tuple(
            (str(code).strip().lower(), int(tier))
            for code, tier in sorted(data.get("tiers", {}).items())
        ),
        default_multiplier=parse_decimal(data.get("default_multiplier", "1.0")),
    )


def parse_tier(data: dict[str, Any]) -> TurnaroundTier:
    return TurnaroundTier(
        code=data["code"],
        name=data.get("name", data["code"]),
        fee_type=data["fee_type"],
        fee_value=parse_decimal(data["fee_value"]),
        estimated_days=int(data.get("estimated_days", 0)),
        is_rush=bool(data.get("is_rush", False)),
        is_default=bool(data.get("is_default", False)),
    )


def parse_day_rule(data: dict[str, Any]) -> TurnaroundDayRule:
    return TurnaroundDayRule(
        base_days=int(data["base_days"]),
        base_pages=parse_decimal(data["base_pages"]),
        pages_per_extra_day=parse_decimal(data["pages_per_extra_day"]),
    )


def parse_schedule(data: dict[str, Any]) -> TurnaroundDaySchedule:
    return TurnaroundDaySchedule(
        standard=parse_day_rule(data["standard"]),
        rush=parse_day_rule(data["rush"]),
        overrides=tuple(
            (code, parse_day_rule(rule)) for code, rule in data.get("overrides", {}).items()
        ),
    )


def parse_cutoff(data: dict[str, Any]) -> CutoffWindow:
    return CutoffWindow(
        hour=int(data["hour"]),
        minute=int(data.get("minute", 0)),
        weekdays_only=bool(data.get("weekdays_only", False)),
    )


def parse_delivery_option(data: dict[str, Any], currency: Currency) -> DeliveryOption:
    return DeliveryOption(
        code=data["code"],
        name=data.get("name", data["code"]),
        group=data["group"],
        price=Money.of(parse_decimal(data.get("price", "0")), currency),
        estimated_days=int(data.get("estimated_days", 0)),
        is_always_selected=bool(data.get("is_always_selected", False)),
        requires_address=bool(data.get("requires_address", False)),
    )


def parse_regime(data: dict[str, Any]) -> PricingRegime:
    """Parse a raw regime dict; the checksum is left for the caller to attach."""
    currency = Currency(data["currency"])
    turnaround = data["turnaround"]
    cutoffs = data["cutoffs"]
    return PricingRegime(
        name=data["name"],
        version=int(data.get("version", 1)),
        currency=currency,
        line_items=parse_line_items(data["line_items"], currency),
        tiers=TurnaroundTierSet(tiers=tuple(parse_tier(t) for t in turnaround["tiers"])),
        schedule=parse_schedule(turnaround["schedule"]),
        time_zone=data["time_zone"],
        daily_cutoff=parse_cutoff(cutoffs["daily"]),
        rush_cutoff=parse_cutoff(cutoffs["rush"]),
        same_day_cutoff=parse_cutoff(cutoffs["same_day"]),
        delivery_options=tuple(
            parse_delivery_option(o, currency) for o in data.get("delivery_options", [])
        ),
        languages=parse_languages(data.get("languages", {})),
    )


def load_regime(path: Path) -> PricingRegime:
    """Load, parse and checksum one regime file."""
    data = load_yaml_file(path)
    return parse_regime(data).with_checksum(compute_checksum(data))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
