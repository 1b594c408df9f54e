"""Tests for product validation, formatting, search and statistics helpers."""

import math
from datetime import datetime, timezone

import pytest

from product_manager.models import Product
from product_manager.services.product_helpers import (
    DATE_UNAVAILABLE,
    aggregate,
    check_record_fields,
    filter_by_category,
    format_currency,
    format_timestamp,
    search,
    validate,
)
from tests.helpers import valid_record


def make_product(product_id: str, name: str, description: str, price, category: str) -> Product:
    return Product(
        id=product_id,
        name=name,
        description=description,
        price=price,
        category=category,
        created_at=None,
        updated_at=None,
    )


@pytest.fixture
def catalogue():
    return [
        make_product("1", "Desk Lamp", "Adjustable LED desk lamp", 40.0, "Home"),
        make_product("2", "Headphones", "Wireless noise cancelling", 120.0, "Electronics"),
        make_product("3", "Novel", "A mystery set in a lighthouse", 15.5, "Books"),
        make_product("4", "Cable", "USB-C charging cable", 9.5, "electronics"),
    ]


class TestValidate:
    """Every business rule, reported all at once."""

    def test_minimal_record_passes(self):
        result = validate({"name": "AB", "description": "0123456789", "price": 0, "category": "x"})
        assert result.ok

    def test_valid_record_passes(self):
        result = validate(valid_record())
        assert result.ok
        assert result.problems == []

    @pytest.mark.parametrize(
        "overrides, field_name",
        [
            ({"name": ""}, "name"),
            ({"name": "   "}, "name"),
            ({"name": "A"}, "name"),
            ({"name": "x" * 101}, "name"),
            ({"description": ""}, "description"),
            ({"description": "too short"}, "description"),
            ({"description": "d" * 501}, "description"),
            ({"price": None}, "price"),
            ({"price": "12"}, "price"),
            ({"price": True}, "price"),
            ({"price": math.nan}, "price"),
            ({"price": -0.01}, "price"),
            ({"price": 1_000_000}, "price"),
            ({"category": ""}, "category"),
            ({"category": "  "}, "category"),
        ],
    )
    def test_single_violation_reported_on_field(self, overrides, field_name):
        result = validate(valid_record(**overrides))
        assert not result.ok
        assert [problem.field for problem in result.problems] == [field_name]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": "AB"},
            {"name": "x" * 100},
            {"name": "  AB  "},
            {"description": "0123456789"},
            {"description": "d" * 500},
            {"price": 0},
            {"price": 999_999.99},
        ],
    )
    def test_boundaries_are_accepted(self, overrides):
        assert validate(valid_record(**overrides)).ok

    def test_all_problems_reported_together(self):
        result = validate({"name": "", "description": "", "price": -5, "category": ""})
        assert not result.ok
        fields = {problem.field for problem in result.problems}
        assert fields == {"name", "description", "price", "category"}

    def test_problems_for_field(self):
        result = validate(valid_record(name="A", price=-1))
        assert len(result.problems_for("name")) == 1
        assert len(result.problems_for("price")) == 1
        assert result.problems_for("category") == []

    @pytest.mark.parametrize("record", [None, "not a record", 42, ["name"]])
    def test_non_mapping_record(self, record):
        result = validate(record)
        assert not result.ok
        assert [problem.field for problem in result.problems] == ["record"]


class TestCheckRecordFields:
    def test_usable_record(self):
        assert check_record_fields(valid_record()) == []

    def test_missing_fields_listed(self):
        messages = check_record_fields({"price": "free"})
        assert len(messages) == 4

    def test_short_values_are_not_rejected(self):
        # Length rules belong to validate(); the store only checks presence and type
        assert check_record_fields(valid_record(name="A", description="short")) == []


class TestFormatCurrency:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, "$0.00"),
            (1234.5, "$1,234.50"),
            (999_999.99, "$999,999.99"),
            (5, "$5.00"),
            (-3, "-$3.00"),
            (None, "$0.00"),
            ("12", "$0.00"),
            (math.nan, "$0.00"),
            (True, "$0.00"),
        ],
    )
    def test_format(self, value, expected):
        assert format_currency(value) == expected


class TestFormatTimestamp:
    def test_aware_datetime(self):
        value = datetime(2026, 10, 19, 14, 5, tzinfo=timezone.utc)
        assert format_timestamp(value) == "19 October 2026, 14:05"

    def test_naive_datetime_is_utc(self):
        assert format_timestamp(datetime(2026, 1, 2, 3, 4)) == "02 January 2026, 03:04"

    def test_iso_string(self):
        assert format_timestamp("2026-10-19T14:05:00+00:00") == "19 October 2026, 14:05"

    def test_unknown_zone_falls_back_to_utc(self):
        value = datetime(2026, 10, 19, 14, 5, tzinfo=timezone.utc)
        assert format_timestamp(value, "Not/AZone") == "19 October 2026, 14:05"

    @pytest.mark.parametrize("value", [None, "", "yesterday", 1700000000, {"seconds": 1}])
    def test_unusable_values(self, value):
        assert format_timestamp(value) == DATE_UNAVAILABLE


class TestSearch:
    def test_blank_text_returns_input(self, catalogue):
        assert search("", catalogue) is catalogue
        assert search("   ", catalogue) is catalogue
        assert search(None, catalogue) is catalogue

    def test_matches_name_description_and_category(self, catalogue):
        assert [p.id for p in search("lamp", catalogue)] == ["1"]
        assert [p.id for p in search("LIGHTHOUSE", catalogue)] == ["3"]
        assert [p.id for p in search("electro", catalogue)] == ["2", "4"]

    def test_no_match(self, catalogue):
        assert search("submarine", catalogue) == []


class TestFilterByCategory:
    def test_empty_category_returns_input(self, catalogue):
        assert filter_by_category("", catalogue) is catalogue

    def test_case_insensitive_exact_match(self, catalogue):
        assert [p.id for p in filter_by_category("Electronics", catalogue)] == ["2", "4"]
        assert filter_by_category("Electro", catalogue) == []


class TestAggregate:
    def test_empty(self):
        stats = aggregate([])
        assert stats.total == 0
        assert stats.average_price == 0
        assert stats.total_value == 0
        assert stats.categories == {}

    def test_totals(self, catalogue):
        stats = aggregate(catalogue)
        print(f"Stats: {stats}")
        assert stats.total == 4
        assert stats.total_value == pytest.approx(185.0)
        assert stats.average_price == pytest.approx(46.25)
        assert stats.categories == {"Home": 1, "Electronics": 1, "Books": 1, "electronics": 1}

    def test_three_records(self):
        products = [
            make_product("1", "One", "First product", 10, "A"),
            make_product("2", "Two", "Second product", 20, "A"),
            make_product("3", "Three", "Third product", 30, "B"),
        ]
        stats = aggregate(products)
        assert stats.total == 3
        assert stats.average_price == 20
        assert stats.total_value == 60
        assert stats.categories == {"A": 2, "B": 1}
