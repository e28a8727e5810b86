import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Protocol, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from .models import ProductRow
from .schemas import Product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


class ProductNotFound(LookupError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class Catalog(Protocol):
    async def get_product(self, product_id: int) -> Product: ...

    async def list_products(self) -> List[Product]: ...


def load_products(path: Union[str, Path]) -> List[Product]:
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return [Product.model_validate(item) for item in raw]


class InMemoryCatalog:
    """Catalog held in process memory, in the order the products were given."""

    def __init__(self, products: Iterable[Product] = ()):
        self._products: Dict[int, Product] = {}
        for p in products:
            if p.id in self._products:
                raise ValueError(f"duplicate product id {p.id}")
            self._products[p.id] = p

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "InMemoryCatalog":
        products = load_products(path)
        logger.info("loaded %d products from %s", len(products), path)
        return cls(products)

    async def get_product(self, product_id: int) -> Product:
        try:
            return self._products[product_id]
        except KeyError:
            raise ProductNotFound(product_id) from None

    async def list_products(self) -> List[Product]:
        return list(self._products.values())

    def replace(self, product: Product) -> None:
        # catalog updates swap the whole record; carts keep the instance they hold
        self._products[product.id] = product


class SqlCatalog:
    def __init__(self, session_maker: async_sessionmaker):
        self._session_maker = session_maker

    async def get_product(self, product_id: int) -> Product:
        async with self._session_maker() as session:
            result = await session.execute(select(ProductRow).where(ProductRow.id == product_id))
            row = result.scalar_one_or_none()
            if row is None:
                raise ProductNotFound(product_id)
            return Product.model_validate(row)

    async def list_products(self) -> List[Product]:
        async with self._session_maker() as session:
            result = await session.execute(select(ProductRow).order_by(ProductRow.id))
            return [Product.model_validate(row) for row in result.scalars().all()]


def get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog


@router.get("", response_model=List[Product])
async def list_products(catalog: Catalog = Depends(get_catalog)):
    return await catalog.list_products()


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: int, catalog: Catalog = Depends(get_catalog)):
    try:
        return await catalog.get_product(product_id)
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")


async def seed_products(session_maker: async_sessionmaker, products: Iterable[Product]) -> int:
    """Upsert ``products`` and drop rows whose id is not in the seed."""
    products = list(products)
    async with session_maker() as session:
        for p in products:
            await session.merge(
                ProductRow(
                    id=p.id,
                    name=p.name,
                    price=p.price,
                    image=p.image,
                    available_quantity=p.available_quantity,
                    sizes=list(p.sizes),
                    features=list(p.features),
                )
            )
        await session.execute(delete(ProductRow).where(ProductRow.id.not_in([p.id for p in products])))
        await session.commit()
    logger.info("seeded %d products", len(products))
    return len(products)
