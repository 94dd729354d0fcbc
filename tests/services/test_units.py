from decimal import Decimal

import pytest

from wallet_session.services.units import MAX_UINT256, format_balance, parse_amount, to_smallest_unit


@pytest.mark.parametrize(
    "raw, expected",
    [
        (1_234_567_000_000_000_000, "1.234567"),
        (1_234_567_999_999_999_999, "1.234567"),
        (10**18, "1"),
        (1_500_000_000_000_000_000, "1.5"),
        (999_999_999_999, "0"),
        (1_000_000_000_000, "0.000001"),
        (0, "0"),
        (2**256 - 1, "115792089237316195423570985008687907853269984665640564039457.584007"),
    ],
)
def test_format_balance_truncates(raw, expected):
    assert format_balance(raw) == expected


def test_format_balance_never_rounds_up():
    for raw in (1, 10**12 - 1, 123_456_789_123_456_789, 7 * 10**17 + 999_999_999_999):
        assert Decimal(format_balance(raw)) <= Decimal(raw) / Decimal(10**18)


def test_format_balance_other_decimals():
    assert format_balance(1_234_567, decimals=6) == "1.234567"
    assert format_balance(1_234_567, decimals=6, places=2) == "1.23"


def test_format_balance_rejects_negative():
    with pytest.raises(ValueError):
        format_balance(-1)


def test_parse_amount():
    assert parse_amount(" 0.5 ") == Decimal("0.5")
    for bad in ("", "  ", "abc", "NaN", "-Infinity"):
        with pytest.raises(ValueError):
            parse_amount(bad)


def test_to_smallest_unit():
    assert to_smallest_unit("0.01") == 10**16
    assert to_smallest_unit("1") == 10**18
    assert to_smallest_unit("0.000000000000000001") == 1
    assert to_smallest_unit("2.5", decimals=6) == 2_500_000


@pytest.mark.parametrize("amount", ["0", "-0.1", "0.0000000000000000001", "1.0000001"])
def test_to_smallest_unit_rejects(amount):
    decimals = 6 if amount == "1.0000001" else 18
    with pytest.raises(ValueError):
        to_smallest_unit(amount, decimals)


@pytest.mark.parametrize("amount", ["1e999999999", "1e78", "1e-1000000000", "0." + "0" * 200 + "1"])
def test_to_smallest_unit_rejects_extreme_exponents(amount):
    with pytest.raises(ValueError):
        to_smallest_unit(amount)


def test_to_smallest_unit_uint256_bound():
    assert to_smallest_unit(str(MAX_UINT256), decimals=0) == MAX_UINT256
    with pytest.raises(ValueError):
        to_smallest_unit(str(MAX_UINT256 + 1), decimals=0)
