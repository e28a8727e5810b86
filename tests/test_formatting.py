from decimal import Decimal

import pytest

from illuminous.formatting import badge_label, cart_total, format_dollar_amount, line_subtotal


@pytest.mark.parametrize(
    "amount, expected",
    [
        (0, "$0.00"),
        (7.5, "$7.50"),
        (19.99, "$19.99"),
        (1249, "$1,249.00"),
        (Decimal("1234567.891"), "$1,234,567.89"),
        (-5, "-$5.00"),
    ],
)
def test_format_dollar_amount(amount, expected):
    assert format_dollar_amount(amount) == expected


def test_line_subtotal_and_total(make_product):
    a = make_product(1, price=19.99)
    b = make_product(2, price=0.1)

    assert line_subtotal(a, 3) == Decimal("59.97")
    assert cart_total([(a, 3), (b, 3)]) == Decimal("60.27")
    assert cart_total([]) == Decimal("0.00")


@pytest.mark.parametrize(
    "count, label",
    [(0, None), (1, "1"), (9, "9"), (10, "9+"), (250, "9+")],
)
def test_badge_label(count, label):
    assert badge_label(count) == label
