"""In-memory cart state shared by every display surface of one shopper.

The store is the only writer of cart state. All mutations are synchronous,
so on the single event-loop thread each read-modify-write finishes before
the next request handler step runs and no locking is needed.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .schemas import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartEntry:
    product: Product
    quantity: int


class CartSnapshot(Mapping):
    """Immutable, insertion-ordered view of the cart: product id -> CartEntry."""

    __slots__ = ("_entries", "_index", "version")

    def __init__(self, entries: Tuple[CartEntry, ...] = (), version: int = 0):
        self._entries = tuple(entries)
        self._index = MappingProxyType({e.product.id: e for e in self._entries})
        self.version = version

    def __getitem__(self, product_id: int) -> CartEntry:
        return self._index[product_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        lines = ", ".join(f"{e.product.id}x{e.quantity}" for e in self._entries)
        return f"CartSnapshot(v{self.version}: {lines})"

    @property
    def entries(self) -> Tuple[CartEntry, ...]:
        return self._entries

    def items_ordered(self) -> List[Tuple[Product, int]]:
        return [(e.product, e.quantity) for e in self._entries]

    def quantity_of(self, product_id: int) -> int:
        entry = self._index.get(product_id)
        return entry.quantity if entry else 0

    @property
    def line_count(self) -> int:
        return len(self._entries)


ChangeCallback = Callable[[CartSnapshot], None]


class CartStore:
    def __init__(self, max_product_quantity: int):
        if max_product_quantity < 1:
            raise ValueError("max_product_quantity must be at least 1")
        self.max_product_quantity = max_product_quantity
        # dicts keep insertion order, so the first added product stays first
        self._entries: Dict[int, CartEntry] = {}
        self._version = 0
        self._snapshot: Optional[CartSnapshot] = CartSnapshot()
        self._subscribers: List[ChangeCallback] = []
        self._dispatching = False
        self._pending = False

    # ---- reads ----

    def quantity_of(self, product: Product) -> int:
        entry = self._entries.get(product.id)
        return entry.quantity if entry else 0

    def effective_cap(self, product: Product) -> int:
        return min(self.max_product_quantity, product.available_quantity)

    def can_increment(self, product: Product) -> bool:
        return self.quantity_of(product) < self.effective_cap(product)

    def snapshot(self) -> CartSnapshot:
        if self._snapshot is None:
            self._snapshot = CartSnapshot(tuple(self._entries.values()), self._version)
        return self._snapshot

    def total_line_count(self) -> int:
        return len(self._entries)

    # ---- writes ----

    def increment(self, product: Product) -> bool:
        current = self.quantity_of(product)
        nxt = min(current + 1, self.effective_cap(product))
        if nxt <= current:
            # at the cap, or already above a lowered catalog bound; never shrink here
            logger.debug("increment refused for product %s at %s (cap %s)",
                         product.id, current, self.effective_cap(product))
            return False
        self._entries[product.id] = CartEntry(product, nxt)
        logger.info("product %s quantity %s -> %s", product.id, current, nxt)
        self._changed()
        return True

    def decrement(self, product: Product) -> bool:
        current = self.quantity_of(product)
        if current == 0:
            logger.debug("decrement ignored for product %s: not in cart", product.id)
            return False
        nxt = max(current - 1, 0)
        if nxt == 0:
            del self._entries[product.id]
        else:
            self._entries[product.id] = CartEntry(self._entries[product.id].product, nxt)
        logger.info("product %s quantity %s -> %s", product.id, current, nxt)
        self._changed()
        return True

    # ---- subscriptions ----

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _changed(self) -> None:
        self._version += 1
        self._snapshot = None
        if self._dispatching:
            # a subscriber mutated the cart; the running dispatch loop delivers again
            self._pending = True
            return
        self._dispatch()

    def _dispatch(self) -> None:
        first_error: Optional[BaseException] = None
        self._dispatching = True
        try:
            while True:
                self._pending = False
                snap = self.snapshot()
                for callback in list(self._subscribers):
                    if self._pending:
                        break
                    try:
                        callback(snap)
                    except Exception as e:
                        logger.exception("cart subscriber %r failed", callback)
                        if first_error is None:
                            first_error = e
                if not self._pending:
                    break
        finally:
            self._dispatching = False
        if first_error is not None:
            raise first_error
