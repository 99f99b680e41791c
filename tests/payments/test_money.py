from decimal import Decimal

import pytest

from application.utils.money import MoneyConverter, to_decimal, to_minor_units
from domain.common.exceptions import InvalidAmountException
from shared.codes.payment_codes import PaymentCode


@pytest.mark.parametrize(
    "amount",
    ["0", "0.01", "1", "999.99", "75000", "150000", "50000000", "12345678.90"],
)
def test_round_trip_is_exact(amount):
    value = Decimal(amount)
    assert to_decimal(to_minor_units(value)) == value


def test_minor_units_scale_by_exponent():
    assert to_minor_units(Decimal("150000")) == 15_000_000
    assert MoneyConverter(exponent=0).to_minor_units(Decimal("150000")) == 150_000
    assert to_decimal(15_000_000) == Decimal("150000.00")


def test_float_input_uses_its_decimal_repr():
    # 0.1 + 0.2 style drift must not leak into minor units
    assert to_minor_units(19.99) == 1999
    assert to_minor_units("19.99") == 1999


@pytest.mark.parametrize("amount", [Decimal("-0.01"), -1, "-5"])
def test_negative_amount_is_rejected(amount):
    with pytest.raises(InvalidAmountException) as ei:
        to_minor_units(amount)
    assert ei.value.code == PaymentCode.INVALID_AMOUNT


def test_extra_precision_is_rejected_not_rounded():
    with pytest.raises(InvalidAmountException):
        to_minor_units(Decimal("1.005"))
    with pytest.raises(InvalidAmountException):
        MoneyConverter(exponent=0).to_minor_units(Decimal("10.5"))
    # More significant digits than the default decimal context holds
    with pytest.raises(InvalidAmountException):
        to_minor_units(Decimal("1.0000000000000000000000000001"))
    with pytest.raises(InvalidAmountException):
        to_minor_units("123456789012345678901234567.891")
    assert to_minor_units(Decimal("1.0000000000000000000000000000")) == 100


def test_range_is_enforced_both_ways():
    conv = MoneyConverter(exponent=2, max_minor_units=10_000)
    assert conv.to_minor_units(Decimal("100")) == 10_000
    with pytest.raises(InvalidAmountException):
        conv.to_minor_units(Decimal("100.01"))
    with pytest.raises(InvalidAmountException):
        conv.to_decimal(10_001)
    with pytest.raises(InvalidAmountException):
        conv.to_decimal(-1)


@pytest.mark.parametrize("amount", ["abc", "NaN", "Infinity", None, True])
def test_non_numbers_are_rejected(amount):
    with pytest.raises(InvalidAmountException):
        to_minor_units(amount)
