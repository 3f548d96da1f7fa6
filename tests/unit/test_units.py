"""Unit tests for fixed-point helpers."""
from __future__ import annotations

from decimal import Decimal

from synthdollar.units import PRECISION, from_wei, normalize_price, to_wei


class TestToWei:
    def test_integer(self) -> None:
        assert to_wei(15) == 15 * PRECISION

    def test_float_is_exact(self) -> None:
        assert to_wei(0.1) == 10**17

    def test_string_and_decimals(self) -> None:
        assert to_wei("2000", 8) == 2000 * 10**8

    def test_rounds_down(self) -> None:
        assert to_wei("0.0000000000000000019") == 1


class TestFromWei:
    def test_roundtrip_value(self) -> None:
        assert from_wei(5 * 10**16) == Decimal("0.05")


class TestNormalizePrice:
    def test_eight_decimals(self) -> None:
        assert normalize_price(2000 * 10**8, 8) == 2000 * PRECISION

    def test_eighteen_decimals_unchanged(self) -> None:
        assert normalize_price(7 * PRECISION, 18) == 7 * PRECISION

    def test_more_than_eighteen_decimals(self) -> None:
        assert normalize_price(3 * 10**20, 20) == 3 * PRECISION
