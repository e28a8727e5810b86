from typing import Callable

from .cart_store import CartSnapshot, CartStore, ChangeCallback
from .schemas import Product


class CartApi:
    """Mutation surface handed to display surfaces.

    Surfaces never pass quantities in: every call moves a product by at most
    one unit and the store decides whether the step is allowed.
    """

    def __init__(self, store: CartStore):
        self._store = store

    @property
    def max_product_quantity(self) -> int:
        return self._store.max_product_quantity

    def add_to_cart(self, product: Product) -> bool:
        _check_product(product)
        return self._store.increment(product)

    def remove_from_cart(self, product: Product) -> bool:
        _check_product(product)
        return self._store.decrement(product)

    def get_cart_entries(self) -> CartSnapshot:
        return self._store.snapshot()

    def on_change(self, callback: ChangeCallback) -> Callable[[], None]:
        return self._store.subscribe(callback)

    def quantity_of(self, product: Product) -> int:
        return self._store.quantity_of(product)

    def can_add(self, product: Product) -> bool:
        return self._store.can_increment(product)


def _check_product(product) -> None:
    if not isinstance(product, Product):
        raise TypeError(f"expected Product, got {type(product).__name__}")
