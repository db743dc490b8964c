from decimal import Decimal

import pytest

from stockledger.core.money import parse_decimal, parse_quantity, to_major_units, to_minor_units


def test_half_up_at_the_boundary():
    assert to_minor_units("10.005") == 1001
    assert to_minor_units(10.005) == 1001
    assert to_minor_units("0.025") == 3
    assert to_minor_units("2.675") == 268


def test_below_the_boundary_rounds_down():
    assert to_minor_units("10.0049") == 1000
    assert to_minor_units("10.004") == 1000
    assert to_minor_units("0.0249") == 2


def test_whole_and_integer_input():
    assert to_minor_units(5) == 500
    assert to_minor_units("5.00") == 500
    assert to_minor_units(Decimal("12.34")) == 1234


def test_parse_rejects_non_numbers():
    for value in (None, "", "   ", "abc", "NaN", "Infinity", True):
        assert parse_decimal(value) is None
    with pytest.raises(ValueError):
        to_minor_units("ten")


def test_major_units():
    assert to_major_units(1001) == Decimal("10.01")
    assert to_major_units(0) == Decimal("0.00")


def test_quantity_keeps_at_most_two_places():
    assert parse_quantity("1.25") == Decimal("1.25")
    assert parse_quantity("3.500") == Decimal("3.5")
    assert parse_quantity(2) == Decimal("2")
    assert parse_quantity("0.004") is None
    assert parse_quantity("1.255") is None
    assert parse_quantity("1e40") is None
    assert parse_quantity("abc") is None
