import logging
from typing import Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .catalog import Catalog, ProductNotFound, get_catalog
from .config import PACKAGE_DIR
from .formatting import format_dollar_amount
from .schemas import Product
from .sessions import CartSession, get_cart_session

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))
templates.env.filters["dollars"] = format_dollar_amount
router = APIRouter()

STORE_PATH = "/store"


def _redirect_back(request: Request, next_path: Optional[str]) -> RedirectResponse:
    """303 back to a same-site path: the form's ``next``, then the referer, then the store."""
    target = STORE_PATH
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        target = next_path
    else:
        referer = request.headers.get("referer")
        if referer:
            parsed = urlparse(referer)
            if parsed.netloc == request.url.netloc and parsed.path:
                target = parsed.path
    return RedirectResponse(target, status_code=303)


async def _product_or_404(catalog: Catalog, product_id: int) -> Product:
    try:
        return await catalog.get_product(product_id)
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")


async def _refresh_header(session: CartSession, catalog: Catalog) -> None:
    # "+" availability follows the catalog's current stock, not the record the line was added with
    for product_id in list(session.header.snapshot):
        try:
            product = await catalog.get_product(product_id)
        except ProductNotFound:
            product = None
        session.header.refresh(product_id, product)


async def _render(request: Request, name: str, session: CartSession, catalog: Catalog, **context) -> HTMLResponse:
    await _refresh_header(session, catalog)
    ctx = {"header": session.header, "current_path": request.url.path}
    ctx.update(context)
    return templates.TemplateResponse(request, name, ctx)


@router.get("/", response_class=HTMLResponse)
@router.get(STORE_PATH, response_class=HTMLResponse)
async def store_page(
    request: Request,
    session: CartSession = Depends(get_cart_session),
    catalog: Catalog = Depends(get_catalog),
):
    products = await catalog.list_products()
    return await _render(request, "store.html", session, catalog, products=products, on_store_page=True)


@router.get("/product/{product_id}", response_class=HTMLResponse)
async def product_page(
    product_id: int,
    request: Request,
    session: CartSession = Depends(get_cart_session),
    catalog: Catalog = Depends(get_catalog),
):
    product = await _product_or_404(catalog, product_id)
    view = session.product_page(product)
    return await _render(request, "product.html", session, catalog, view=view, on_store_page=False)


@router.post("/product/{product_id}/quantity")
async def change_draft_quantity(
    product_id: int,
    action: str = Form("set"),
    quantity: str = Form(""),
    session: CartSession = Depends(get_cart_session),
    catalog: Catalog = Depends(get_catalog),
):
    view = session.product_page(await _product_or_404(catalog, product_id))
    if action == "increase":
        view.quantity.increase()
    elif action == "decrease":
        view.quantity.decrease()
    elif action == "set":
        view.quantity.on_input(quantity)
        view.quantity.on_blur()
    else:
        raise HTTPException(status_code=400, detail=f"Unknown quantity action: {action}")
    return RedirectResponse(f"/product/{product_id}", status_code=303)


@router.post("/product/{product_id}/size")
async def select_size(
    product_id: int,
    size: int = Form(...),
    session: CartSession = Depends(get_cart_session),
    catalog: Catalog = Depends(get_catalog),
):
    view = session.product_page(await _product_or_404(catalog, product_id))
    try:
        view.select_size(size)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return RedirectResponse(f"/product/{product_id}", status_code=303)


@router.post("/product/{product_id}/add")
async def commit_add_to_cart(
    product_id: int,
    quantity: Optional[str] = Form(None),
    size: Optional[int] = Form(None),
    session: CartSession = Depends(get_cart_session),
    catalog: Catalog = Depends(get_catalog),
):
    view = session.product_page(await _product_or_404(catalog, product_id))
    if quantity is not None:
        view.quantity.on_blur(quantity)
    if size is not None:
        try:
            view.select_size(size)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if view.commit():
        logger.info("session %s added product %s (draft quantity %s)", session.id, product_id, view.quantity.value)
    return RedirectResponse(f"/product/{product_id}", status_code=303)


@router.post("/cart/{product_id}/increment")
async def header_increment(
    product_id: int,
    request: Request,
    next: Optional[str] = Form(None),
    session: CartSession = Depends(get_cart_session),
    catalog: Catalog = Depends(get_catalog),
):
    try:
        product = await catalog.get_product(product_id)
    except ProductNotFound:
        # gone from the catalog: the line stays but can no longer grow
        session.header.refresh(product_id, None)
    else:
        session.header.increment(product)
    return _redirect_back(request, next)


@router.post("/cart/{product_id}/decrement")
async def header_decrement(
    product_id: int,
    request: Request,
    next: Optional[str] = Form(None),
    session: CartSession = Depends(get_cart_session),
):
    session.header.decrement(product_id)
    return _redirect_back(request, next)


@router.post("/header/cart/toggle")
async def header_toggle(
    request: Request,
    next: Optional[str] = Form(None),
    session: CartSession = Depends(get_cart_session),
):
    session.header.toggle()
    return _redirect_back(request, next)


@router.post("/header/click")
async def header_click(
    request: Request,
    target: str = Form(""),
    next: Optional[str] = Form(None),
    session: CartSession = Depends(get_cart_session),
):
    session.header.on_click(target or None)
    return _redirect_back(request, next)
