import logging
import re
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from fastapi import Request

from .cart_api import CartApi
from .cart_store import CartStore
from .schemas import Product
from .surfaces import Clock, HeaderCartWidget, ProductPageView

logger = logging.getLogger(__name__)

SESSION_ID_RE = re.compile(r"^[0-9a-f]{32}$")


@dataclass
class CartSession:
    id: str
    cart: CartApi
    header: HeaderCartWidget
    notice_seconds: float = 1.0
    clock: Clock = time.monotonic
    product_pages: Dict[int, ProductPageView] = field(default_factory=dict)
    last_seen: float = 0.0

    def close(self) -> None:
        self.header.close()
        for view in self.product_pages.values():
            view.close()

    def product_page(self, product: Product) -> ProductPageView:
        view = self.product_pages.get(product.id)
        if view is None:
            view = ProductPageView(product, self.cart, self.notice_seconds, self.clock)
            self.product_pages[product.id] = view
        elif view.product != product:
            view.update_product(product)
        return view


class CartSessions:
    """Process-local registry: one cart and its surfaces per shopper session.

    Bounded two ways: a session idle for ``idle_seconds`` is dropped on the
    next lookup, and once ``max_sessions`` are held the least recently used
    one is evicted to make room.
    """

    def __init__(
        self,
        max_product_quantity: int,
        notice_seconds: float = 1.0,
        clock: Clock = time.monotonic,
        max_sessions: int = 10000,
        idle_seconds: float = 86400.0,
    ):
        self.max_product_quantity = max_product_quantity
        self.notice_seconds = notice_seconds
        self.clock = clock
        self.max_sessions = max_sessions
        self.idle_seconds = idle_seconds
        self._sessions: "OrderedDict[str, CartSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def _drop(self, session_id: str, reason: str) -> None:
        session = self._sessions.pop(session_id)
        session.close()
        logger.info("dropped cart session %s (%s)", session_id, reason)

    def _expire_idle(self) -> None:
        cutoff = self.clock() - self.idle_seconds
        # least recently used first
        while self._sessions:
            session_id, oldest = next(iter(self._sessions.items()))
            if oldest.last_seen > cutoff:
                break
            self._drop(session_id, "idle")

    def get(self, session_id: Optional[str]) -> Optional[CartSession]:
        """Look a session up and mark it used; None if unknown or expired."""
        if not session_id:
            return None
        self._expire_idle()
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_seen = self.clock()
            self._sessions.move_to_end(session_id)
        return session

    def create(self) -> CartSession:
        self._expire_idle()
        while len(self._sessions) >= self.max_sessions:
            self._drop(next(iter(self._sessions)), "evicted")
        session_id = uuid.uuid4().hex
        cart = CartApi(CartStore(self.max_product_quantity))
        session = CartSession(
            id=session_id,
            cart=cart,
            header=HeaderCartWidget(cart),
            notice_seconds=self.notice_seconds,
            clock=self.clock,
            last_seen=self.clock(),
        )
        self._sessions[session_id] = session
        logger.info("new cart session %s", session_id)
        return session

    def get_or_create(self, session_id: Optional[str]) -> Tuple[CartSession, bool]:
        if session_id and SESSION_ID_RE.match(session_id):
            existing = self.get(session_id)
            if existing is not None:
                return existing, False
        return self.create(), True


async def get_cart_session(request: Request) -> CartSession:
    """Resolve the shopper's cart from the cookie, starting a session only when a route needs one.

    A new session id is left on ``request.state`` for the middleware to send
    back as a cookie.
    """
    session = getattr(request.state, "cart_session", None)
    if session is None:
        registry: CartSessions = request.app.state.sessions
        cookie_name = request.app.state.settings.session_cookie
        session, created = registry.get_or_create(request.cookies.get(cookie_name))
        request.state.cart_session = session
        if created:
            request.state.new_cart_session = session.id
    return session
