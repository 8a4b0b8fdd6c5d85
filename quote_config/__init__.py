"""
quote_config -- single public entrypoint for pricing configuration.

Responsibility:
    Provides the one way to obtain a pricing regime at runtime through
    ``get_pricing_regime()``. Engines never read configuration; the
    service layer fetches a regime and hands its parts to them.

Architecture position:
    Configuration -- sits above ``quote_engines`` and below
    ``quote_services``. Engines and the kernel MUST NEVER import from
    ``quote_config``.

Failure modes:
    - ``FileNotFoundError`` -- no regime file with the requested name.
    - ``KeyError`` / ``ValueError`` -- missing or malformed fields.
    - ``InvalidArgumentError`` -- values the engines reject (e.g. a rush
      day rule slower than standard, two default tiers).

Audit relevance:
    Every successful ``get_pricing_regime()`` call emits a
    ``QUOTE_CONFIG_TRACE`` log entry with the regime name, version and
    checksum. Quotes record the checksum so a price can be traced back to
    the configuration that produced it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from quote_config.loader import load_regime
from quote_config.schema import PricingRegime

_logger = logging.getLogger("quote_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "regimes"


def get_pricing_regime(
    name: str = "default",
    config_dir: Path | None = None,
) -> PricingRegime:
    """The public configuration entrypoint.

    Args:
        name: Regime file stem (``<name>.yaml``).
        config_dir: Override path to the regimes directory.
            Defaults to quote_config/regimes/.

    Raises:
        FileNotFoundError: If no regime file matches ``name``.
    """
    regimes_dir = config_dir or _DEFAULT_CONFIG_DIR
    path = regimes_dir / f"{name}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"Pricing regime not found: {path}")

    regime = load_regime(path)

    _logger.info(
        "QUOTE_CONFIG_TRACE",
        extra={
            "trace_type": "QUOTE_CONFIG_TRACE",
            "regime_name": regime.name,
            "regime_version": regime.version,
            "checksum": regime.checksum,
            "currency": regime.currency.code,
            "tier_count": len(regime.tiers),
            "delivery_option_count": len(regime.delivery_options),
        },
    )
    return regime


__all__ = ["PricingRegime", "get_pricing_regime"]
