import time
from typing import Optional

from fastapi import FastAPI, Request
import uvicorn

from . import cart, catalog as catalog_module, pages
from .catalog import Catalog, InMemoryCatalog, SqlCatalog
from .config import Settings, settings
from .database import create_tables, make_engine, make_session_maker
from .logger import setup_logger
from .sessions import CartSessions
from .surfaces import Clock


def create_app(
    app_settings: Optional[Settings] = None,
    catalog: Optional[Catalog] = None,
    clock: Clock = time.monotonic,
) -> FastAPI:
    app_settings = app_settings or settings
    logger = setup_logger(app_settings.log_level, app_settings.log_dir)

    app = FastAPI(
        title="Illuminous",
        description="🛒 Storefront with a shared shopping cart",
        version="1.0.0",
    )

    engine = None
    if catalog is None:
        if app_settings.catalog_backend == "database":
            engine = make_engine(app_settings.database_url, echo=app_settings.db_echo)
            catalog = SqlCatalog(make_session_maker(engine))
        else:
            catalog = InMemoryCatalog.from_json(app_settings.catalog_file)

    app.state.settings = app_settings
    app.state.catalog = catalog
    app.state.sessions = CartSessions(
        app_settings.max_product_quantity,
        notice_seconds=app_settings.added_message_seconds,
        clock=clock,
        max_sessions=app_settings.max_sessions,
        idle_seconds=app_settings.session_idle_seconds,
    )

    @app.middleware("http")
    async def issue_session_cookie(request: Request, call_next):
        # sessions are created by get_cart_session, only on routes that use a cart
        response = await call_next(request)
        new_session_id = getattr(request.state, "new_cart_session", None)
        if new_session_id:
            response.set_cookie(app_settings.session_cookie, new_session_id, httponly=True, samesite="lax")
        return response

    # ✅ Routers
    app.include_router(catalog_module.router)
    app.include_router(cart.router)
    app.include_router(pages.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    if engine is not None:
        @app.on_event("startup")
        async def on_startup():
            await create_tables(engine)

        @app.on_event("shutdown")
        async def on_shutdown():
            await engine.dispose()

    logger.info(
        "storefront ready (catalog=%s, max_product_quantity=%s)",
        type(catalog).__name__, app_settings.max_product_quantity,
    )
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("illuminous.main:app", host="0.0.0.0", port=8000, reload=True)
