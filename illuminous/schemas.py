from pydantic import BaseModel, Field
from typing import Optional, List, Tuple


# 🛍️ Product (read-only for the cart)
class Product(BaseModel):
    id: int
    name: str
    price: float = Field(ge=0)
    image: str = ""
    available_quantity: int = Field(ge=0)
    sizes: Tuple[int, ...] = Field(min_length=1)
    features: Tuple[str, ...] = ()

    class Config:
        from_attributes = True
        frozen = True


# 🛒 Cart requests
class CartProductRequest(BaseModel):
    product_id: int


# 🛒 Cart responses
class CartLineOut(BaseModel):
    product: Product
    quantity: int
    subtotal: str


class CartSummary(BaseModel):
    items: List[CartLineOut]
    count: int
    badge: Optional[str] = None
    total: str


class CartCount(BaseModel):
    count: int
    badge: Optional[str] = None
