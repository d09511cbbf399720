"""Tests for sf_common.money — Decimal money strings."""

from decimal import Decimal

import pytest

from src.sf_common.money import format_money, money_to_display, parse_money, validate_price


class TestParseMoney:
    def test_quantizes_to_cents(self) -> None:
        assert parse_money("25.9") == Decimal("25.90")
        assert parse_money(3) == Decimal("3.00")

    def test_rounds_half_up(self) -> None:
        assert parse_money("1.005") == Decimal("1.01")

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid money"):
            parse_money("abc")

    def test_infinity_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_money("Infinity")


class TestFormatMoney:
    def test_two_places(self) -> None:
        assert format_money(Decimal("25.9")) == "25.90"
        assert format_money("45.90") == "45.90"


class TestValidatePrice:
    def test_positive_ok(self) -> None:
        assert validate_price("5.9") == "5.90"

    def test_zero_raises(self) -> None:
        with pytest.raises(ValueError, match="greater than zero"):
            validate_price("0")

    def test_negative_raises(self) -> None:
        with pytest.raises(ValueError, match="greater than zero"):
            validate_price("-1.00")


class TestMoneyToDisplay:
    def test_brl_format(self) -> None:
        assert money_to_display(Decimal("1234.5")) == "R$ 1.234,50"

    def test_small(self) -> None:
        assert money_to_display("5.90") == "R$ 5,90"

    def test_negative(self) -> None:
        assert money_to_display("-10") == "-R$ 10,00"
