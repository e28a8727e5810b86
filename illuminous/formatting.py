from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple, Union

from .schemas import Product

CENTS = Decimal("0.01")
BADGE_LIMIT = 9

Amount = Union[Decimal, float, int]


def to_money(amount: Amount) -> Decimal:
    # str() first so 19.99 stays 19.99 instead of its binary float expansion
    return Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_dollar_amount(amount: Amount) -> str:
    value = to_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def line_subtotal(product: Product, quantity: int) -> Decimal:
    return to_money(to_money(product.price) * quantity)


def cart_total(lines: Iterable[Tuple[Product, int]]) -> Decimal:
    return sum((line_subtotal(p, q) for p, q in lines), Decimal("0.00"))


def badge_label(count: int) -> Optional[str]:
    """Cart badge text: nothing for an empty cart, "9+" past nine lines."""
    if count <= 0:
        return None
    if count > BADGE_LIMIT:
        return f"{BADGE_LIMIT}+"
    return str(count)
