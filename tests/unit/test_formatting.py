"""
Unit Tests - Display Formatting
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from reporting.analytics.formatting import (
    days_ago,
    format_currency,
    format_date,
    format_days_ago,
    format_number,
    format_percentage,
    placeholder,
)

NOW = datetime(2025, 6, 15, 12, 0)


class TestFormatCurrency:
    """Tests for format_currency"""

    def test_grouping_and_cents(self):
        """Test thousands separators and two decimals"""
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(Decimal("1000000")) == "$1,000,000.00"
        assert format_currency(0) == "$0.00"

    def test_negative(self):
        """Test the sign goes before the dollar sign"""
        assert format_currency(-5) == "-$5.00"

    def test_numeric_string(self):
        """Test numeric strings are accepted"""
        assert format_currency("19.999") == "$20.00"

    def test_without_cents(self):
        """Test whole-dollar rendering rounds half up"""
        assert format_currency(1234.5, show_cents=False) == "$1,235"

    @pytest.mark.parametrize("value", ["not-a-number", None, float("nan"), float("inf"), object(), True])
    def test_unusable_input(self, value):
        """Test anything unusable renders as $0.00 instead of raising"""
        assert format_currency(value) == "$0.00"

    @pytest.mark.parametrize("value,expected", [
        ("1e30", "$1" + ",000" * 10 + ".00"),
        (1e30, "$1" + ",000" * 10 + ".00"),
        (10 ** 40, "$10" + ",000" * 13 + ".00"),
    ])
    def test_very_large_values(self, value, expected):
        """Test values beyond the default decimal precision still render"""
        assert format_currency(value) == expected

    def test_very_large_value_without_cents(self):
        """Test whole-dollar rendering of a huge value"""
        assert format_currency(10 ** 30, show_cents=False) == "$1" + ",000" * 10


class TestFormatNumbers:
    """Tests for format_number and format_percentage"""

    def test_format_number(self):
        """Test grouping and decimals"""
        assert format_number(1234567) == "1,234,567"
        assert format_number(1234.567, decimals=2) == "1,234.57"
        assert format_number("abc") == "0"

    def test_many_decimals(self):
        """Test more decimals than the default decimal precision allows"""
        assert format_number(1, decimals=30) == "1." + "0" * 30
        assert format_percentage(12.5, decimals=30) == "12.5" + "0" * 29 + "%"

    def test_format_percentage(self):
        """Test one decimal by default"""
        assert format_percentage(12.345) == "12.3%"
        assert format_percentage(-20) == "-20.0%"
        assert format_percentage(60, decimals=0) == "60%"

    def test_unknown_percentage(self):
        """Test unknown margins render as N/A, not 0%"""
        assert format_percentage(None) == "N/A"


class TestFormatDates:
    """Tests for relative and absolute dates"""

    def test_days_ago(self):
        """Test whole days elapsed, floored"""
        assert days_ago(datetime(2025, 6, 15, 8, 0), now=NOW) == 0
        assert days_ago(datetime(2025, 6, 14, 13, 0), now=NOW) == 0
        assert days_ago(date(2025, 6, 10), now=NOW) == 5
        assert days_ago("2025-06-01", now=NOW) == 14

    def test_format_days_ago(self):
        """Test today, singular and plural wording"""
        assert format_days_ago(datetime(2025, 6, 15, 1, 0), now=NOW) == "today"
        assert format_days_ago(datetime(2025, 6, 14, 12, 0), now=NOW) == "1 day ago"
        assert format_days_ago(date(2025, 6, 1), now=NOW) == "14 days ago"

    def test_invalid_dates(self):
        """Test unparsable dates render as the placeholder"""
        assert format_days_ago("last tuesday", now=NOW) == "—"
        assert format_date(None) == "—"
        assert days_ago(42, now=NOW) is None

    def test_format_date(self):
        """Test month abbreviation without zero padding"""
        assert format_date(date(2025, 1, 5)) == "Jan 5, 2025"
        assert format_date("2024-12-25T10:00:00") == "Dec 25, 2024"

    def test_placeholder(self):
        """Test missing values become the dash placeholder"""
        assert placeholder(None) == "—"
        assert placeholder("") == "—"
        assert placeholder(0) == 0
        assert placeholder("Acme") == "Acme"
