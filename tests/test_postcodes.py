"""Tests for UK postcode normalization and format validation."""

import pytest

from takeaway.services.postcodes import is_valid_uk_postcode_format, normalize_uk_postcode


class TestNormalizeUkPostcode:
    """Tests for normalize_uk_postcode."""

    @pytest.mark.parametrize("raw,expected", [
        ("wf94py", "WF9 4PY"),
        (" WF9 4PY ", "WF9 4PY"),
        ("wf9-4py", "WF9 4PY"),
        ("SW1A1AA", "SW1A 1AA"),
        ("m11ae", "M1 1AE"),
    ])
    def test_inserts_space_before_inward_code(self, raw, expected):
        assert normalize_uk_postcode(raw) == expected

    def test_short_input_returned_without_space(self):
        assert normalize_uk_postcode("wf9") == "WF9"
        assert normalize_uk_postcode("ab12") == "AB12"

    def test_none_and_empty(self):
        assert normalize_uk_postcode(None) == ""
        assert normalize_uk_postcode("") == ""
        assert normalize_uk_postcode("  ") == ""

    @pytest.mark.parametrize("raw", ["wf94py", "SW1A 1AA", "x y z 1 2 3", "LS1-4AP"])
    def test_idempotent(self, raw):
        once = normalize_uk_postcode(raw)
        assert normalize_uk_postcode(once) == once


class TestIsValidUkPostcodeFormat:
    """Tests for is_valid_uk_postcode_format."""

    @pytest.mark.parametrize("postcode", [
        "WF9 4PY", "WF94PY", "M1 1AE", "SW1A 1AA", "B33 8TH", "CR2 6XH", "wf9 4py",
    ])
    def test_valid(self, postcode):
        assert is_valid_uk_postcode_format(postcode) is True

    @pytest.mark.parametrize("postcode", [
        "", "WF9", "12345", "WF9 4P", "WF9  4PY", "NOT A CODE", "WF9 4PY\n", "WF9 4PYX",
    ])
    def test_invalid(self, postcode):
        assert is_valid_uk_postcode_format(postcode) is False

    def test_non_string(self):
        assert is_valid_uk_postcode_format(None) is False
        assert is_valid_uk_postcode_format(1234) is False
