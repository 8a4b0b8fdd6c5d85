"""
Tests for pricing regime loading.

Covers:
- The shipped default regime parses into engine value objects
- get_pricing_regime() lookup, override directory and trace logging
- Checksum determinism
- Malformed regimes fail loudly
"""

import copy
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from quote_config import get_pricing_regime
from quote_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_decimal,
    parse_regime,
)
from quote_engines.delivery import DeliveryGroup
from quote_engines.line_item import compute_translation_charge
from quote_kernel.exceptions import InvalidArgumentError

DEFAULT_REGIME_PATH = (
    Path(__file__).resolve().parents[2] / "quote_config" / "regimes" / "default.yaml"
)


@pytest.fixture
def raw_default() -> dict:
    return load_yaml_file(DEFAULT_REGIME_PATH)


def _write_regime(directory: Path, name: str, data: dict) -> Path:
    path = directory / f"{name}.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaultRegime:

    def test_identity(self, regime):
        assert regime.name == "default"
        assert regime.currency.code == "CAD"
        assert regime.time_zone == "America/Edmonton"
        assert len(regime.checksum) == 64

    def test_line_item_pricing(self, regime):
        pricing = regime.line_items
        assert pricing.base_rate_per_page.amount == Decimal("65.00")
        assert pricing.words_per_page == 225
        assert pricing.rounding_unit == Decimal("2.50")

    def test_tiers(self, regime):
        assert regime.tiers.codes == ("standard", "rush", "same_day")
        assert regime.tiers.default.code == "standard"
        assert regime.tiers.get("rush").fee_value == Decimal("30")

    def test_schedule(self, regime):
        assert regime.schedule.standard.base_days == 2
        assert regime.schedule.rush.pages_per_extra_day == Decimal("3")

    def test_cutoffs(self, regime):
        assert (regime.daily_cutoff.hour, regime.daily_cutoff.minute) == (16, 30)
        assert regime.same_day_cutoff.hour == 14
        assert regime.same_day_cutoff.weekdays_only
        assert regime.rush_cutoff.weekdays_only

    def test_delivery_options(self, regime):
        by_code = {o.code: o for o in regime.delivery_options}
        assert by_code["online_portal"].is_always_selected
        assert by_code["online_portal"].group is DeliveryGroup.DIGITAL
        assert by_code["regular_mail"].estimated_days == 5
        assert by_code["regular_mail"].requires_address

    @pytest.mark.parametrize("language,multiplier", [
        ("es", Decimal("1.0")),
        ("ZH", Decimal("1.25")),
        ("ja", Decimal("1.5")),
        ("tl", Decimal("1.0")),
    ])
    def test_language_multiplier(self, regime, language, multiplier):
        assert regime.language_multiplier(language) == multiplier

    def test_override_wins(self, regime):
        assert regime.language_multiplier("ja", Decimal("1.1")) == Decimal("1.1")

    def test_pricing_for_language(self, regime):
        pricing = regime.pricing_for("zh")
        # 65 * 2.2 * 1.25 = 178.75 -> 180.00
        assert compute_translation_charge(Decimal("2.2"), pricing).amount == Decimal("180.00")


class TestGetPricingRegime:

    def test_unknown_regime(self):
        with pytest.raises(FileNotFoundError):
            get_pricing_regime("does_not_exist")

    def test_config_dir_override(self, tmp_path, raw_default):
        data = copy.deepcopy(raw_default)
        data["name"] = "ontario"
        data["time_zone"] = "America/Toronto"
        _write_regime(tmp_path, "ontario", data)

        regime = get_pricing_regime("ontario", config_dir=tmp_path)

        assert regime.name == "ontario"
        assert regime.time_zone == "America/Toronto"

    def test_emits_config_trace(self, captured_logs):
        regime = get_pricing_regime()

        traces = [r for r in captured_logs() if r["message"] == "QUOTE_CONFIG_TRACE"]
        assert traces
        assert traces[0]["regime_name"] == "default"
        assert traces[0]["checksum"] == regime.checksum


class TestChecksum:

    def test_deterministic(self, raw_default):
        assert compute_checksum(raw_default) == compute_checksum(copy.deepcopy(raw_default))

    def test_changes_with_content(self, raw_default):
        changed = copy.deepcopy(raw_default)
        changed["line_items"]["base_rate_per_page"] = "70.00"
        assert compute_checksum(changed) != compute_checksum(raw_default)

    def test_matches_loaded_regime(self, regime, raw_default):
        assert regime.checksum == compute_checksum(raw_default)


class TestMalformedRegimes:

    def test_parse_decimal_rejects_text(self):
        with pytest.raises(ValueError):
            parse_decimal("sixty-five")

    def test_parse_decimal_accepts_yaml_float(self):
        assert parse_decimal(1.15) == Decimal("1.15")

    def test_missing_required_key(self, raw_default):
        data = copy.deepcopy(raw_default)
        del data["line_items"]["words_per_page"]
        with pytest.raises(KeyError):
            parse_regime(data)

    def test_zero_words_per_page(self, raw_default):
        data = copy.deepcopy(raw_default)
        data["line_items"]["words_per_page"] = 0
        with pytest.raises(InvalidArgumentError):
            parse_regime(data)

    def test_rush_slower_than_standard(self, raw_default):
        data = copy.deepcopy(raw_default)
        data["turnaround"]["schedule"]["rush"]["base_days"] = 5
        with pytest.raises(InvalidArgumentError, match="rush rule"):
            parse_regime(data)

    def test_two_default_tiers(self, raw_default):
        data = copy.deepcopy(raw_default)
        data["turnaround"]["tiers"][1]["is_default"] = True
        with pytest.raises(InvalidArgumentError):
            parse_regime(data)

    def test_unknown_currency(self, raw_default):
        data = copy.deepcopy(raw_default)
        data["currency"] = "ZZZ"
        with pytest.raises(ValueError):
            parse_regime(data)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("name: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(path)
