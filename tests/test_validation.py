"""Tests for the configuration validators and attribute descriptions."""

import pytest

from streamnative_provider.schema import validation
from streamnative_provider.schema.descriptions import DESCRIPTIONS, describe


class TestNotBlank:
    @pytest.mark.parametrize("value", ["acme", " a ", "x"])
    def test_accepts(self, value):
        assert validation.not_blank(value) == value

    @pytest.mark.parametrize("value", ["", "   ", '""', '" "'])
    def test_rejects(self, value):
        with pytest.raises(ValueError, match="'name' must not be empty"):
            validation.not_blank(value, "name")


class TestOneOf:
    def test_accepts_member(self):
        assert validation.one_of("lts", validation.RELEASE_CHANNELS) == "lts"

    def test_rejects_with_allowed_values(self):
        with pytest.raises(ValueError) as excinfo:
            validation.one_of("beta", validation.RELEASE_CHANNELS, "release_channel")
        assert "lts, rapid" in str(excinfo.value)
        assert "got: beta" in str(excinfo.value)


class TestRanges:
    @pytest.mark.parametrize("value", [1, 3, 15])
    def test_int_between_accepts_bounds(self, value):
        assert validation.int_between(value, 1, 15) == value

    @pytest.mark.parametrize("value", [0, 16])
    def test_int_between_rejects(self, value):
        with pytest.raises(ValueError, match="greater than or equal to 1"):
            validation.int_between(value, 1, 15, "broker_replicas")

    @pytest.mark.parametrize("value", [0.2, 0.5, 8])
    def test_unit_between_accepts(self, value):
        assert validation.unit_between(value) == value

    @pytest.mark.parametrize("value", [0.1, 8.5])
    def test_unit_between_rejects(self, value):
        with pytest.raises(ValueError):
            validation.unit_between(value, "compute_unit_per_broker")


class TestCollections:
    def test_audit_log_categories(self):
        values = ["Management", "Produce"]
        assert validation.audit_log_categories(values) == values

    def test_unknown_audit_log_category(self):
        with pytest.raises(ValueError, match="Management, Describe, Produce, Consume"):
            validation.audit_log_categories(["Management", "Admin"])

    def test_unique_strings(self):
        assert validation.unique_strings(["a", "b"]) == ["a", "b"]
        with pytest.raises(ValueError, match="duplicate"):
            validation.unique_strings(["a", "a"], "allowed_ids")


class TestDescriptions:
    def test_describe_known_key(self):
        assert describe("organization") == "The organization name"

    def test_describe_unknown_key(self):
        with pytest.raises(KeyError):
            describe("no_such_attribute")

    def test_read_only(self):
        with pytest.raises(TypeError):
            DESCRIPTIONS["organization"] = "changed"
