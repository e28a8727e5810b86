"""Display surfaces that read and write the shared cart.

Each surface subscribes to the cart and keeps only the latest snapshot it was
handed plus its own transient UI state (open dropdown, selected size, draft
quantity). None of that local state is ever treated as cart data.
"""
import re
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .cart_api import CartApi
from .cart_store import CartSnapshot
from .formatting import badge_label, cart_total, format_dollar_amount, line_subtotal
from .schemas import Product

Clock = Callable[[], float]

NON_DIGITS = re.compile(r"\D")


class CaptureRegion:
    """Set of element ids that count as "inside" for click-outside dismissal.

    A click on a member keeps the region open. A click on an exempt id (the
    toggle that opens the region) is ignored. Anything else is outside.
    """

    def __init__(self, root: str, exempt: Iterable[str] = ()):
        self.root = root
        self._members = {root}
        self._exempt = set(exempt)

    def add(self, element_id: str) -> None:
        self._members.add(element_id)

    def reset(self, element_ids: Iterable[str] = ()) -> None:
        self._members = {self.root, *element_ids}

    def __contains__(self, element_id: str) -> bool:
        return element_id in self._members

    def is_outside(self, target: Optional[str]) -> bool:
        if target in self._exempt:
            return False
        return target not in self._members


@dataclass(frozen=True)
class HeaderLine:
    product: Product
    quantity: int
    subtotal: str
    can_increment: bool

    @property
    def increment_id(self) -> str:
        return f"shopping-cart-{self.product.id}-increment"

    @property
    def decrement_id(self) -> str:
        return f"shopping-cart-{self.product.id}-decrement"


class HeaderCartWidget:
    PANEL_ID = "shopping-cart"
    BUTTON_ID = "shopping-cart-button"

    def __init__(self, cart: CartApi):
        self._cart = cart
        self.snapshot: CartSnapshot = cart.get_cart_entries()
        self.renders = 0
        self.is_open = False
        self.region = CaptureRegion(self.PANEL_ID, exempt=[self.BUTTON_ID])
        # latest catalog read per line; None once the product left the catalog
        self._current: Dict[int, Optional[Product]] = {}
        self._sync_region()
        self._unsubscribe = cart.on_change(self._on_cart_change)

    def _on_cart_change(self, snapshot: CartSnapshot) -> None:
        self.snapshot = snapshot
        self._current = {pid: rec for pid, rec in self._current.items() if pid in snapshot}
        self.renders += 1
        self._sync_region()

    def refresh(self, product_id: int, product: Optional[Product]) -> None:
        """Record the catalog's current record for a line (None if it is gone)."""
        if product_id in self.snapshot:
            self._current[product_id] = product

    def _cap_for(self, product: Product) -> int:
        current = self._current.get(product.id, product)
        if current is None:
            return 0
        return min(self._cart.max_product_quantity, current.available_quantity)

    def _sync_region(self) -> None:
        ids = []
        for line in self.lines:
            ids += [line.increment_id, line.decrement_id]
        self.region.reset(ids)

    @property
    def line_count(self) -> int:
        return self.snapshot.line_count

    @property
    def badge(self) -> Optional[str]:
        return badge_label(self.line_count)

    @property
    def is_empty(self) -> bool:
        return self.line_count == 0

    @property
    def lines(self) -> List[HeaderLine]:
        return [
            HeaderLine(
                product=p,
                quantity=q,
                subtotal=format_dollar_amount(line_subtotal(p, q)),
                can_increment=q < self._cap_for(p),
            )
            for p, q in self.snapshot.items_ordered()
        ]

    @property
    def total(self) -> str:
        return format_dollar_amount(cart_total(self.snapshot.items_ordered()))

    def toggle(self) -> bool:
        self.is_open = not self.is_open
        return self.is_open

    def on_click(self, target: Optional[str]) -> bool:
        """Close the dropdown when a click lands outside it. Returns True if it closed."""
        if self.is_open and self.region.is_outside(target):
            self.is_open = False
            return True
        return False

    def increment(self, product: Product) -> bool:
        """Add one unit to an existing line, capped by the catalog's current ``product`` record."""
        if product.id not in self.snapshot:
            return False
        self.refresh(product.id, product)
        return self._cart.add_to_cart(product)

    def decrement(self, product_id: int) -> bool:
        entry = self.snapshot.get(product_id)
        if entry is None:
            return False
        return self._cart.remove_from_cart(entry.product)

    def close(self) -> None:
        self._unsubscribe()


class QuantitySelector:
    """Draft quantity on the product page, never written to the cart directly."""

    MIN = 1
    MAX = 99
    MAX_LENGTH = 2

    def __init__(self, value: int = 1):
        self.value = self._clamp(value)
        self.text = str(self.value)

    @classmethod
    def _clamp(cls, value: int) -> int:
        return max(cls.MIN, min(value, cls.MAX))

    @classmethod
    def _parse(cls, text: str) -> int:
        digits = NON_DIGITS.sub("", text)[: cls.MAX_LENGTH]
        return int(digits) if digits else 0

    @property
    def can_decrease(self) -> bool:
        return self.value > self.MIN

    @property
    def can_increase(self) -> bool:
        return self.value < self.MAX

    def decrease(self) -> int:
        self.value = self._clamp(self.value - 1)
        self.text = str(self.value)
        return self.value

    def increase(self) -> int:
        self.value = self._clamp(self.value + 1)
        self.text = str(self.value)
        return self.value

    def on_input(self, text: str) -> None:
        # an emptied field stays empty while typing; the value snaps back on blur
        if not text:
            self.text = ""
            return
        parsed = self._parse(text)
        self.text = str(parsed)
        self.value = self._clamp(parsed)

    def on_blur(self, text: Optional[str] = None) -> int:
        parsed = self._parse(self.text if text is None else text) or 1
        self.value = self._clamp(parsed)
        self.text = str(self.value)
        return self.value


class AddedNotice:
    """Transient "Added to Cart!" confirmation; purely cosmetic."""

    def __init__(self, duration: float = 1.0, clock: Clock = time.monotonic):
        self.duration = duration
        self._clock = clock
        self._shown_at: Optional[float] = None

    def show(self) -> None:
        self._shown_at = self._clock()

    @property
    def active(self) -> bool:
        if self._shown_at is None:
            return False
        if self._clock() - self._shown_at >= self.duration:
            self._shown_at = None
            return False
        return True


class ProductPageView:
    def __init__(
        self,
        product: Product,
        cart: CartApi,
        notice_seconds: float = 1.0,
        clock: Clock = time.monotonic,
    ):
        self.product = product
        self._cart = cart
        self.selected_size = product.sizes[0]
        self.quantity = QuantitySelector()
        self.notice = AddedNotice(notice_seconds, clock)
        self.cart_quantity = cart.get_cart_entries().quantity_of(product.id)
        self.renders = 0
        self._unsubscribe = cart.on_change(self._on_cart_change)

    def _on_cart_change(self, snapshot: CartSnapshot) -> None:
        self.cart_quantity = snapshot.quantity_of(self.product.id)
        self.renders += 1

    def update_product(self, product: Product) -> None:
        if product.id != self.product.id:
            raise ValueError(f"view shows product {self.product.id}, got {product.id}")
        self.product = product
        if self.selected_size not in product.sizes:
            self.selected_size = product.sizes[0]

    def select_size(self, size: int) -> None:
        if size not in self.product.sizes:
            raise ValueError(f"product {self.product.id} has no size {size}")
        self.selected_size = size

    @property
    def size_options(self) -> List[Tuple[int, str, bool]]:
        return [(s, f"{s}-pack", s == self.selected_size) for s in self.product.sizes]

    @property
    def price_label(self) -> str:
        return format_dollar_amount(self.product.price)

    @property
    def at_cap(self) -> bool:
        return (
            self.cart_quantity >= self._cart.max_product_quantity
            or self.cart_quantity >= self.product.available_quantity
        )

    @property
    def add_disabled(self) -> bool:
        return self.notice.active or self.at_cap

    @property
    def add_label(self) -> str:
        return "Added to Cart!" if self.notice.active else "Add to Cart"

    def commit(self) -> bool:
        """Add one unit of the product. The draft quantity is not sent to the cart."""
        if self.add_disabled:
            return False
        if not self._cart.add_to_cart(self.product):
            return False
        self.notice.show()
        return True

    def close(self) -> None:
        self._unsubscribe()
