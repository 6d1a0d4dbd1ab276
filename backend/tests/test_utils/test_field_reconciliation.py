"""Tests for provider field reconciliation."""

from land_auctions.utils.field_reconciliation import is_empty, parse_acreage, reconcile_fields


class TestReconcileFields:
    def test_preferred_key_wins(self):
        merged = reconcile_fields({"acreage": 80, "acres": 120, "address": "A", "location": "B"})
        assert merged["acreage"] == 80
        assert merged["address"] == "A"

    def test_synonym_used_when_preferred_missing_or_empty(self):
        merged = reconcile_fields(
            {"auction_date": "  ", "date": "2025-12-15", "acres": 155.29, "property_type": "Cropland"}
        )
        assert merged["auction_date"] == "2025-12-15"
        assert merged["acreage"] == 155.29
        assert merged["land_type"] == "Cropland"

    def test_missing_fields_are_none(self):
        merged = reconcile_fields({"title": "Farm"})
        assert merged["title"] == "Farm"
        assert merged["county"] is None
        assert merged["state"] is None

    def test_strings_trimmed(self):
        assert reconcile_fields({"county": "  Story "})["county"] == "Story"


class TestParseAcreage:
    def test_numbers(self):
        assert parse_acreage(155.29) == 155.29
        assert parse_acreage(80) == 80.0

    def test_strings(self):
        assert parse_acreage("155.29 +/-") == 155.29
        assert parse_acreage("1,240 acres") == 1240.0
        assert parse_acreage("approx. 40 ac") == 40.0

    def test_unusable_values(self):
        assert parse_acreage(None) is None
        assert parse_acreage(True) is None
        assert parse_acreage(0) is None
        assert parse_acreage("TBD") is None


class TestIsEmpty:
    def test_values(self):
        assert is_empty(None)
        assert is_empty("  ")
        assert is_empty([])
        assert not is_empty(0)
        assert not is_empty("x")
