"""Tests for the promo code catalog."""

import pytest

from aircompanion.promo.catalog import PROMO_CODES, PromoCatalog, PromoCode, promo_catalog


class TestLookup:
    """Lookup is case-insensitive and ignores inactive codes."""

    @pytest.mark.parametrize("entered", ["WELCOME50", "welcome50", "Welcome50", "  welcome50 "])
    def test_matches_any_case(self, entered):
        promo = promo_catalog.lookup(entered)

        assert promo is not None
        assert promo.code == "WELCOME50"
        assert promo.credits == 50

    def test_unknown_code(self):
        assert promo_catalog.lookup("FREEAIR") is None

    def test_empty_code(self):
        assert promo_catalog.lookup("") is None

    def test_inactive_code_is_not_returned(self):
        assert "SUMMER2024" in promo_catalog
        assert promo_catalog.lookup("SUMMER2024") is None

    def test_builtin_grants(self):
        assert promo_catalog.lookup("CLEANAIR100").credits == 100
        assert promo_catalog.lookup("first25").credits == 25
        assert promo_catalog.lookup("refer25").credits == 25


class TestCatalog:

    def test_list_active_keeps_catalog_order(self):
        codes = [promo.code for promo in promo_catalog.list_active()]

        assert codes == ["WELCOME50", "CLEANAIR100", "FIRST25", "REFER25"]
        assert len(promo_catalog) == len(PROMO_CODES)

    def test_mixed_case_entries_are_normalized(self):
        catalog = PromoCatalog([PromoCode(code=" spring10", credits=10, description="Spring")])

        assert catalog.lookup("SPRING10").code == "SPRING10"
        assert catalog.lookup("Spring10").credits == 10

    def test_duplicate_codes_rejected(self):
        with pytest.raises(ValueError, match="Duplicate promo code"):
            PromoCatalog([
                PromoCode(code="abc", credits=5),
                PromoCode(code="ABC", credits=10),
            ])

    @pytest.mark.parametrize("credits", [0, -5])
    def test_grant_must_be_positive(self, credits):
        with pytest.raises(ValueError):
            PromoCode(code="BROKEN", credits=credits)
