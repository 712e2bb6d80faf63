"""
tests/test_sql_codec.py
-----------------------
Unit tests for dbdiff/sql_codec.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import datetime
import decimal

import pytest

from dbdiff.sql_codec import (
    BareDefault,
    escape_string,
    escape_value,
    normalize_value,
    quote_identifiers,
    render_default,
    stringify,
)


class TestEscapeValue:
    def test_none_is_null(self) -> None:
        assert escape_value(None) == "NULL"

    def test_true_is_one(self) -> None:
        assert escape_value(True) == "1"

    def test_false_is_zero(self) -> None:
        assert escape_value(False) == "0"

    @pytest.mark.parametrize("value, expected", [(5, "5"), (-3, "-3"), (2.5, "2.5")])
    def test_numbers_are_bare(self, value: object, expected: str) -> None:
        assert escape_value(value) == expected

    def test_decimal_is_bare(self) -> None:
        assert escape_value(decimal.Decimal("10.50")) == "10.50"

    def test_single_quote_doubled(self) -> None:
        assert escape_value("O'Brien") == "'O''Brien'"

    def test_backslash_left_alone(self) -> None:
        assert escape_value("C:\\temp") == "'C:\\temp'"

    def test_numeric_string_is_quoted(self) -> None:
        assert escape_value("5") == "'5'"

    def test_datetime_is_quoted_text(self) -> None:
        value = datetime.datetime(2024, 1, 2, 3, 4, 5)
        assert escape_value(value) == "'2024-01-02 03:04:05'"

    def test_bytes_decoded(self) -> None:
        assert escape_value(b"abc") == "'abc'"


class TestEscapeString:
    def test_quotes_and_backslashes(self) -> None:
        assert escape_string("it's a\\b") == "it''s a\\\\b"


class TestRenderDefault:
    @pytest.mark.parametrize("keyword", [m.value for m in BareDefault])
    def test_bare_keywords(self, keyword: str) -> None:
        assert render_default(keyword) == f"DEFAULT {keyword}"

    def test_plain_value_quoted(self) -> None:
        assert render_default("active") == "DEFAULT 'active'"

    def test_lowercase_keyword_is_not_special(self) -> None:
        assert render_default("current_timestamp") == "DEFAULT 'current_timestamp'"

    def test_value_escaped(self) -> None:
        assert render_default("it's") == "DEFAULT 'it''s'"


class TestHelpers:
    def test_normalize_bytearray(self) -> None:
        assert normalize_value(bytearray(b"xy")) == "xy"

    def test_normalize_passthrough(self) -> None:
        assert normalize_value(7) == 7

    def test_stringify_int_and_str_agree(self) -> None:
        assert stringify(5) == stringify("5")

    def test_quote_identifiers(self) -> None:
        assert quote_identifiers(["a", "b"]) == "`a`, `b`"


class TestDriverValueTypes:
    """Values mysql-connector-python hands back for SET and TIME columns."""

    def test_set_members_sorted_and_joined(self) -> None:
        assert normalize_value({"write", "read"}) == "read,write"

    def test_empty_set(self) -> None:
        assert normalize_value(set()) == ""

    def test_set_literal(self) -> None:
        assert escape_value({"b", "a"}) == "'a,b'"

    def test_set_text_independent_of_insertion_order(self) -> None:
        assert stringify({"x", "y", "z"}) == stringify({"z", "y", "x"}) == "x,y,z"

    @pytest.mark.parametrize("value, expected", [
        (datetime.timedelta(hours=26), "26:00:00"),
        (datetime.timedelta(hours=8, minutes=5, seconds=9), "08:05:09"),
        (datetime.timedelta(0), "00:00:00"),
        (-datetime.timedelta(hours=1, minutes=30), "-01:30:00"),
        (datetime.timedelta(seconds=1, microseconds=250), "00:00:01.000250"),
        (datetime.timedelta(hours=838, minutes=59, seconds=59), "838:59:59"),
    ])
    def test_time_text(self, value: datetime.timedelta, expected: str) -> None:
        assert normalize_value(value) == expected

    def test_time_literal(self) -> None:
        assert escape_value(datetime.timedelta(hours=26)) == "'26:00:00'"

    def test_date_literal(self) -> None:
        assert escape_value(datetime.date(2024, 2, 29)) == "'2024-02-29'"
