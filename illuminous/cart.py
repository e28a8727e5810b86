import logging

from fastapi import APIRouter, Depends, HTTPException

from .cart_store import CartSnapshot
from .catalog import Catalog, ProductNotFound, get_catalog
from .formatting import badge_label, cart_total, format_dollar_amount, line_subtotal
from .schemas import CartCount, CartLineOut, CartProductRequest, CartSummary
from .sessions import CartSession, get_cart_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["cart"])


def build_summary(snapshot: CartSnapshot) -> CartSummary:
    lines = snapshot.items_ordered()
    return CartSummary(
        items=[
            CartLineOut(product=p, quantity=q, subtotal=format_dollar_amount(line_subtotal(p, q)))
            for p, q in lines
        ],
        count=snapshot.line_count,
        badge=badge_label(snapshot.line_count),
        total=format_dollar_amount(cart_total(lines)),
    )


@router.get("", response_model=CartSummary)
async def get_cart(session: CartSession = Depends(get_cart_session)):
    return build_summary(session.cart.get_cart_entries())


@router.get("/count", response_model=CartCount)
async def get_cart_count(session: CartSession = Depends(get_cart_session)):
    count = session.cart.get_cart_entries().line_count
    return CartCount(count=count, badge=badge_label(count))


@router.post("/add", response_model=CartSummary)
async def add_to_cart(
    payload: CartProductRequest,
    session: CartSession = Depends(get_cart_session),
    catalog: Catalog = Depends(get_catalog),
):
    try:
        product = await catalog.get_product(payload.product_id)
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")

    session.cart.add_to_cart(product)
    return build_summary(session.cart.get_cart_entries())


@router.post("/remove", response_model=CartSummary)
async def remove_from_cart(
    payload: CartProductRequest,
    session: CartSession = Depends(get_cart_session),
):
    # the cart keeps the product it was given; an id it does not hold is already at zero
    entry = session.cart.get_cart_entries().get(payload.product_id)
    if entry is not None:
        session.cart.remove_from_cart(entry.product)
    else:
        logger.debug("remove of product %s ignored: not in cart", payload.product_id)
    return build_summary(session.cart.get_cart_entries())
