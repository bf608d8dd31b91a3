"""Tests for money helpers"""
import pytest
from decimal import Decimal

from shopcart.money import compare, format_money, parse_price, round_money, to_decimal, to_float


class TestMoney:
    """Tests for Decimal helpers."""

    def test_to_decimal(self):
        """Test conversions and fallbacks"""
        assert to_decimal(5.9) == Decimal("5.9")
        assert to_decimal("12.50") == Decimal("12.50")
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("abc") == Decimal("0")
        assert to_decimal(True) == Decimal("0")

    def test_parse_price(self):
        """Test strict price parsing"""
        assert parse_price(None) == Decimal("0")
        assert parse_price(0.1) == Decimal("0.1")
        for bad in ("abc", -1, float("nan"), float("inf"), True, [1]):
            with pytest.raises(ValueError):
                parse_price(bad)

    def test_round_money(self):
        """Test half-up rounding to cents"""
        assert round_money("2.345") == Decimal("2.35")
        assert round_money(2) == Decimal("2.00")

    def test_format_money(self):
        """Test display formatting"""
        assert format_money(Decimal("1234.5")) == "RM 1,234.50"
        assert format_money(3, label="$") == "$ 3.00"

    def test_to_float_and_compare(self):
        """Test boundary conversion and comparison"""
        assert to_float(Decimal("50.90")) == 50.9
        assert compare(50, "50.00") == 0
        assert compare(49.99, 50) == -1
        assert compare(51, 50) == 1
