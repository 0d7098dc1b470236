"""
Identifier normalization: plates, VINs, national IDs and emails.
"""

import pytest

from workshop.services.identifier_service import (
    normalize_dni,
    normalize_email,
    normalize_plate,
    normalize_vin,
)


class TestPlate:

    @pytest.mark.parametrize("raw", ["ABC-123", "abc 123", "ABC123", " abc-12 3 "])
    def test_variants_share_canonical_form(self, raw):
        assert normalize_plate(raw) == "ABC123"

    @pytest.mark.parametrize("raw", [None, ""])
    def test_falsy_is_empty(self, raw):
        assert normalize_plate(raw) == ""

    def test_only_separators_is_empty(self):
        assert normalize_plate(" - ") == ""

    @pytest.mark.parametrize("raw", ["AB 123 CD", "ab-123-cd", "xyz987"])
    def test_idempotent(self, raw):
        once = normalize_plate(raw)
        assert normalize_plate(once) == once


class TestVin:

    def test_trims_removes_inner_whitespace_uppercases(self):
        assert normalize_vin("  1fadp3f20 fl000001 ") == "1FADP3F20FL000001"

    def test_hyphens_are_kept(self):
        assert normalize_vin("vf1-bb05") == "VF1-BB05"

    @pytest.mark.parametrize("raw", [None, ""])
    def test_falsy_is_empty(self, raw):
        assert normalize_vin(raw) == ""

    def test_idempotent(self):
        once = normalize_vin(" vf1 bb05cf2r000002")
        assert normalize_vin(once) == once


class TestDni:

    @pytest.mark.parametrize("raw", ["30.123.456", "30-123-456", " 30 123 456 ", "30123456"])
    def test_separators_removed(self, raw):
        assert normalize_dni(raw) == "30123456"

    def test_letters_uppercased(self):
        assert normalize_dni("20-30123456-x") == "2030123456X"

    @pytest.mark.parametrize("raw", [None, "", "  ", " . - "])
    def test_blank_is_none(self, raw):
        assert normalize_dni(raw) is None

    def test_idempotent(self):
        once = normalize_dni("20.301.234-5")
        assert normalize_dni(once) == once


class TestEmail:

    def test_trimmed_and_lowercased(self):
        assert normalize_email("  Laura.Gimenez@Example.COM ") == "laura.gimenez@example.com"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_is_none(self, raw):
        assert normalize_email(raw) is None
