# Overview: Pytest coverage for GST computation, HSN lookup and GSTIN checks.

"""
Tax engine tests.

Pure computations; no database rows are needed.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from khataplus.errors import InvalidAmountError, UnknownHSNCodeError, ValidationError
from khataplus.services.tax_service import (
    TaxConfig,
    compute_for_config,
    compute_tax,
    lookup_hsn,
    lookup_hsn_rate,
    resolve_place_of_supply,
    split_tax,
    tax_config_for,
    validate_gstin,
)


class TestComputeTax:

    def test_exclusive_intra_state(self):
        split = compute_tax(200, 18)
        assert split.taxable_value == Decimal("200.00")
        assert split.tax_amount == Decimal("36.00")
        assert split.cgst == Decimal("18.00")
        assert split.sgst == Decimal("18.00")
        assert split.igst == Decimal("0.00")
        assert split.total == Decimal("236.00")

    def test_inclusive_backs_out_tax(self):
        split = compute_tax("236", "18", mode="inclusive")
        assert split.taxable_value == Decimal("200.00")
        assert split.tax_amount == Decimal("36.00")
        assert split.total == Decimal("236.00")

    def test_inter_state_is_all_igst(self):
        split = compute_tax(200, 18, jurisdiction="inter")
        assert split.igst == Decimal("36.00")
        assert split.cgst == Decimal("0.00")
        assert split.sgst == Decimal("0.00")

    def test_odd_paisa_goes_to_sgst(self):
        """0.51 tax splits 0.26 / 0.25 and still sums exactly."""
        split = compute_tax("10.10", 5)
        assert split.tax_amount == Decimal("0.51")
        assert split.cgst == Decimal("0.26")
        assert split.sgst == Decimal("0.25")
        assert split.cgst + split.sgst == split.tax_amount

    def test_zero_rate(self):
        split = compute_tax("99.99", 0)
        assert split.tax_amount == Decimal("0.00")
        assert split.total == Decimal("99.99")

    def test_rate_from_hsn_code(self):
        split = compute_tax(100, hsn_code="85171300")
        assert split.rate == Decimal("18")
        assert split.tax_amount == Decimal("18.00")

    def test_explicit_rate_wins_over_hsn(self):
        split = compute_tax(100, 5, hsn_code="8517")
        assert split.tax_amount == Decimal("5.00")

    def test_float_input_is_not_binary_float(self):
        split = compute_tax(0.1, 18)
        assert split.taxable_value == Decimal("0.10")
        assert split.tax_amount == Decimal("0.02")

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidAmountError):
            compute_tax(-1, 18)

    @pytest.mark.parametrize("bad", [Decimal("NaN"), Decimal("Infinity"), float("nan"), float("inf"), "nan", "Infinity", "-inf"])
    def test_non_finite_amount_rejected(self, bad):
        with pytest.raises(InvalidAmountError):
            compute_tax(bad, 18)

    @pytest.mark.parametrize("bad", [Decimal("NaN"), float("inf"), "NaN"])
    def test_non_finite_rate_rejected(self, bad):
        with pytest.raises(InvalidAmountError):
            compute_tax(100, bad)

    def test_rate_above_hundred_rejected(self):
        with pytest.raises(InvalidAmountError):
            compute_tax(100, 101)

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            compute_tax(100, 18, mode="compound")

    def test_rate_or_hsn_required(self):
        with pytest.raises(ValidationError):
            compute_tax(100)

    def test_to_dict_serializes_money_as_strings(self):
        data = compute_tax(200, 18).to_dict()
        assert data["total"] == "236.00"
        assert data["cgst"] == "18.00"
        assert data["mode"] == "exclusive"


AMOUNTS = ["0.01", "0.05", "0.99", "1.01", "7.77", "99.99", "333.33", "1000", "18.52", "123456.79", "9999999.99"]
RATES = ["0", "0.25", "3", "5", "12", "18", "28"]


class TestSplitArithmetic:

    @pytest.mark.parametrize("rate", RATES)
    @pytest.mark.parametrize("amount", AMOUNTS)
    def test_inclusive_parts_add_back_to_gross(self, amount, rate):
        split = compute_tax(amount, rate, mode="inclusive")
        assert split.taxable_value + split.tax_amount == Decimal(amount)
        assert split.total == Decimal(amount)
        assert split.cgst + split.sgst == split.tax_amount
        # Backed-out tax is the rate on the taxable value, to within a paisa
        assert abs(split.taxable_value * Decimal(rate) / 100 - split.tax_amount) <= Decimal("0.01")

    @pytest.mark.parametrize("rate", RATES)
    @pytest.mark.parametrize("amount", AMOUNTS)
    def test_exclusive_adds_tax_on_top(self, amount, rate):
        split = compute_tax(amount, rate)
        assert split.taxable_value == Decimal(amount)
        assert abs(split.tax_amount - Decimal(amount) * Decimal(rate) / 100) <= Decimal("0.005")
        assert split.cgst + split.sgst == split.tax_amount
        assert abs(split.cgst - split.sgst) <= Decimal("0.01")
        assert split.total == split.taxable_value + split.tax_amount

    @pytest.mark.parametrize("mode", ["exclusive", "inclusive"])
    @pytest.mark.parametrize("amount", AMOUNTS)
    def test_inter_state_matches_intra_total(self, amount, mode):
        intra = compute_tax(amount, "18", mode=mode)
        inter = compute_tax(amount, "18", mode=mode, jurisdiction="inter")
        assert inter.igst == intra.tax_amount
        assert inter.cgst == inter.sgst == Decimal("0")
        assert inter.total == intra.total


class TestTaxConfig:

    def test_gst_disabled_charges_nothing(self):
        split = compute_for_config(100, 18, TaxConfig(gst_enabled=False))
        assert split.tax_amount == Decimal("0.00")
        assert split.total == Decimal("100.00")

    def test_other_state_buyer_is_inter_state(self):
        org = SimpleNamespace(gst_enabled=True, gst_inclusive=False, state_code="27")
        assert tax_config_for(org, "29").jurisdiction == "inter"
        assert tax_config_for(org, "27").jurisdiction == "intra"
        assert tax_config_for(org, None).jurisdiction == "intra"

    def test_inclusive_org(self):
        org = SimpleNamespace(gst_enabled=True, gst_inclusive=True, state_code=None)
        config = tax_config_for(org, "29")
        assert config.mode == "inclusive"
        # Seller state unknown: cannot be inter-state
        assert config.jurisdiction == "intra"

    def test_split_tax(self):
        assert split_tax(Decimal("0.51"), "intra") == (Decimal("0.26"), Decimal("0.25"), Decimal("0.00"))
        assert split_tax(Decimal("0.51"), "inter") == (Decimal("0.00"), Decimal("0.00"), Decimal("0.51"))


class TestHSNLookup:

    def test_exact_heading(self):
        entry = lookup_hsn("0401")
        assert entry["rate"] == Decimal("0")
        assert entry["heading"] == "0401"

    def test_long_code_falls_back_to_heading(self):
        entry = lookup_hsn("30049099")
        assert entry["heading"] == "3004"
        assert entry["rate"] == Decimal("12")

    def test_sac_code(self):
        assert lookup_hsn_rate("998314") == Decimal("18")

    def test_unlisted_service_is_not_guessed(self):
        # No chapter-wide default: 9997 is not in the table
        with pytest.raises(UnknownHSNCodeError):
            lookup_hsn("999799")
        with pytest.raises(UnknownHSNCodeError):
            compute_tax(1000, hsn_code="999799")

    def test_unknown_code_is_never_guessed(self):
        with pytest.raises(UnknownHSNCodeError):
            lookup_hsn("0000")

    def test_malformed_code(self):
        with pytest.raises(ValidationError):
            lookup_hsn("ABCD")


class TestGSTIN:

    def test_normalizes_case(self):
        assert validate_gstin(" 27aapfu0939f1zv ") == "27AAPFU0939F1ZV"

    @pytest.mark.parametrize("bad", ["", "27AAPFU0939F1Z", "27AAPFU0939F1XV", "AAAAPFU0939F1ZV"])
    def test_rejects_malformed(self, bad):
        with pytest.raises(ValidationError):
            validate_gstin(bad)

    def test_place_of_supply_from_gstin(self):
        assert resolve_place_of_supply(None, "29AABCT1332L1ZT") == "29"
        assert resolve_place_of_supply("07", "29AABCT1332L1ZT") == "07"
        assert resolve_place_of_supply(None, None) is None

    def test_place_of_supply_must_be_two_digits(self):
        with pytest.raises(ValidationError):
            resolve_place_of_supply("MH", None)
